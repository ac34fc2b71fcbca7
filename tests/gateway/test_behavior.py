# tests/gateway/test_behavior.py
import pytest

from agente_gateway.modules.gateway.behavior import (
    MENSAJES_SALUDO, SUGERENCIAS, Behavior, behavior_response, detect_behavior,
)


@pytest.mark.parametrize(
    "query, expected",
    [
        ("hola", Behavior.SALUDO),
        ("Buenos dias!", Behavior.SALUDO),
        ("ADIÓS", Behavior.DESPEDIDA),
        ("muchas gracias", Behavior.DESPEDIDA),
        ("¿Qué puedes hacer?", Behavior.CAPACIDADES),
        ("necesito ayuda", Behavior.CAPACIDADES),
        ("empresas en Lima", Behavior.CONSULTA_NORMAL),
        ("máquinas de la planta Huachipa", Behavior.CONSULTA_NORMAL),
        ("", Behavior.CONSULTA_NORMAL),
        (None, Behavior.CONSULTA_NORMAL),
    ],
)
def test_detect_behavior(query, expected):
    assert detect_behavior(query) == expected


def test_phrases_match_whole_words_only():
    # "hi" no debe disparar el saludo dentro de "Huachipa" ni de "archivo"
    assert detect_behavior("reportes de Huachipa en el archivo") == Behavior.CONSULTA_NORMAL


def test_greeting_response_shape():
    payload = behavior_response(Behavior.SALUDO)
    assert payload["comportamiento"] == "saludo"
    assert payload["mensaje"] == "Comportamiento general detectado"
    assert payload["respuesta"]["texto"] in MENSAJES_SALUDO
    assert payload["respuesta"]["sugerencias"] == SUGERENCIAS


def test_capabilities_response_lists_capabilities():
    payload = behavior_response(Behavior.CAPACIDADES)
    assert payload["comportamiento"] == "capacidades"
    assert payload["respuesta"]["capacidades"]


def test_normal_query_has_no_canned_response():
    with pytest.raises(ValueError):
        behavior_response(Behavior.CONSULTA_NORMAL)
