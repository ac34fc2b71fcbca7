# agente_gateway/modules/gateway/behavior.py

import random
import re
from enum import Enum
from typing import Any, Dict, List, Optional

from agente_gateway.modules.query.fuzzy import normalize_text

SALUDOS = [
    "hola", "hi", "hello", "buenos días", "buenas tardes", "buenas noches",
    "hey", "qué tal", "cómo estás", "saludos", "buen día",
]
DESPEDIDAS = [
    "adiós", "bye", "chao", "hasta luego", "nos vemos", "hasta pronto",
    "hasta la vista", "que tengas buen día", "gracias", "thanks",
]
CAPACIDADES = [
    "qué puedes hacer", "qué sabes hacer", "cuáles son tus funciones",
    "ayuda", "help", "funciones", "capacidades", "qué ofreces",
]

MENSAJES_SALUDO = [
    "¡Hola! 👋 Soy tu asistente de gestión empresarial.",
    "¡Bienvenido! Estoy aquí para ayudarte con tu sistema de gestión.",
    "¡Hola! 🤖 Listo para asistirte con empresas, plantas, máquinas y reportes.",
]
MENSAJES_DESPEDIDA = [
    "¡Hasta luego! 👋 Fue un gusto ayudarte.",
    "¡Que tengas un excelente día! 🌟",
    "¡Nos vemos! 🤖 No dudes en consultarme cuando lo necesites.",
]
CAPACIDADES_DETALLE = [
    "Gestión de usuarios: buscar, listar y gestionar usuarios del sistema",
    "Gestión de empresas: consultar empresas por nombre, RUC, ubicación",
    "Gestión de plantas: administrar plantas industriales y sus datos",
    "Gestión de máquinas: controlar inventario de máquinas y equipos",
    "Gestión de encargados: personal a cargo de plantas/máquinas",
    "Reportes de servicio: consultar reportes técnicos",
    "Reportes de visita: revisar reportes de visitas técnicas",
]
SUGERENCIAS = [
    "Listar todas las empresas",
    "Listar todas las plantas",
    "Ver reportes de servicio recientes",
    "Consultar máquinas por marca o modelo",
]


class Behavior(str, Enum):
    SALUDO = "saludo"
    DESPEDIDA = "despedida"
    CAPACIDADES = "capacidades"
    CONSULTA_NORMAL = "consulta_normal"


def _compile(phrases: List[str]) -> re.Pattern:
    alternatives = "|".join(re.escape(normalize_text(p, strip_accents=True)) for p in phrases)
    return re.compile(rf"\b(?:{alternatives})\b")


_PATTERNS = (
    (Behavior.SALUDO, _compile(SALUDOS)),
    (Behavior.DESPEDIDA, _compile(DESPEDIDAS)),
    (Behavior.CAPACIDADES, _compile(CAPACIDADES)),
)


def detect_behavior(query: Optional[str]) -> Behavior:
    """Saludo, despedida o pregunta de capacidades; si no, consulta normal."""
    if not query:
        return Behavior.CONSULTA_NORMAL
    text = normalize_text(query, strip_accents=True)
    for behavior, pattern in _PATTERNS:
        if pattern.search(text):
            return behavior
    return Behavior.CONSULTA_NORMAL


def behavior_response(behavior: Behavior) -> Dict[str, Any]:
    if behavior == Behavior.SALUDO:
        respuesta = {"texto": random.choice(MENSAJES_SALUDO), "sugerencias": SUGERENCIAS}
    elif behavior == Behavior.DESPEDIDA:
        respuesta = {"texto": random.choice(MENSAJES_DESPEDIDA)}
    elif behavior == Behavior.CAPACIDADES:
        respuesta = {
            "texto": "Mis capacidades como asistente de gestión",
            "capacidades": CAPACIDADES_DETALLE,
            "sugerencias": SUGERENCIAS,
        }
    else:
        raise ValueError(f"No canned response for behavior '{behavior.value}'")
    return {
        "comportamiento": behavior.value,
        "respuesta": respuesta,
        "mensaje": "Comportamiento general detectado",
    }
