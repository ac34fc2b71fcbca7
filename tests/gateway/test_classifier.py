# tests/gateway/test_classifier.py
import json

import pytest

from agente_gateway.core.exceptions import ClassificationError
from agente_gateway.modules.gateway.catalog import ActionId, Category
from agente_gateway.modules.gateway.classifier import IntentClassifier, parse_intent, strip_code_fences
from agente_gateway.modules.gateway.prompts import SYSTEM_PROMPT
from agente_gateway.services.llm_client import GenerationChain
from conftest import FakeLLM

pytestmark = pytest.mark.asyncio

VALID = {
    "categoria": "empresa",
    "acciones": ["searchEmpresas"],
    "parametros_sugeridos": {"distrito": "Lima"},
    "explicacion": "Buscar empresas por distrito",
}


async def test_fenced_json_is_accepted():
    raw = "```json\n" + json.dumps(VALID) + "\n```"
    assert strip_code_fences(raw) == json.dumps(VALID)
    intent = parse_intent(raw)
    assert intent.categoria == Category.EMPRESA
    assert intent.acciones == [ActionId.SEARCH_EMPRESAS]
    assert intent.parametros_sugeridos == {"distrito": "Lima"}


async def test_uppercase_category_name_is_accepted():
    intent = parse_intent(json.dumps({**VALID, "categoria": "REPORTE_SERVICIO", "acciones": ["listReporteServicio"]}))
    assert intent.categoria == Category.REPORTE_SERVICIO


@pytest.mark.parametrize(
    "raw",
    [
        "esto no es json",
        json.dumps(["searchEmpresas"]),
        json.dumps({**VALID, "categoria": None}),
        json.dumps({**VALID, "acciones": "searchEmpresas"}),
        json.dumps({**VALID, "acciones": []}),
        json.dumps({**VALID, "categoria": "facturas"}),
        json.dumps({**VALID, "acciones": ["deleteUser"]}),
    ],
)
async def test_invalid_outputs_raise_classification_error_with_raw(raw):
    with pytest.raises(ClassificationError) as exc_info:
        parse_intent(raw)
    assert exc_info.value.raw_output == raw
    assert exc_info.value.to_payload()["respuesta_raw"] == raw


async def test_classify_sends_catalog_prompt_in_json_mode():
    llm = FakeLLM("FakeLLM", [json.dumps(VALID)])
    classifier = IntentClassifier(GenerationChain([llm]), temperature=0.1, max_tokens=500)
    intent = await classifier.classify("empresas en Lima")

    assert intent.categoria == Category.EMPRESA
    call = llm.calls[0]
    assert call["system"] == SYSTEM_PROMPT
    assert "empresas en Lima" in call["prompt"]
    assert call["json_mode"] is True
    assert call["temperature"] == 0.1
    assert call["max_tokens"] == 500


async def test_system_prompt_lists_every_category_and_action():
    for category in Category:
        assert f'"{category.value}"' in SYSTEM_PROMPT
    for action in ActionId:
        assert f"- {action.value} (" in SYSTEM_PROMPT
