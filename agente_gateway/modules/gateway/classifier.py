# agente_gateway/modules/gateway/classifier.py

import json
import re
from typing import Optional

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from agente_gateway.core.config import settings
from agente_gateway.core.exceptions import ClassificationError
from agente_gateway.core.logging_config import trace_id_var
from agente_gateway.models.gateway import Intent
from agente_gateway.modules.gateway.prompts import SYSTEM_PROMPT, build_user_prompt
from agente_gateway.services.llm_client import GenerationChain

FENCE_RE = re.compile(r"^\s*```(?:json)?\s*|\s*```\s*$", re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    return FENCE_RE.sub("", text or "").strip()


def parse_intent(raw: str) -> Intent:
    """Valida la salida cruda del modelo como Intent."""
    cleaned = strip_code_fences(raw)
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ClassificationError(f"Respuesta de IA no es JSON válido: {e.msg}", raw_output=raw) from e

    if not isinstance(payload, dict):
        raise ClassificationError("Respuesta de IA no es un objeto JSON", raw_output=raw)
    if not payload.get("categoria"):
        raise ClassificationError("Respuesta de IA sin 'categoria'", raw_output=raw)
    if not isinstance(payload.get("acciones"), list) or not payload["acciones"]:
        raise ClassificationError("Respuesta de IA sin 'acciones' válidas", raw_output=raw)

    try:
        return Intent.model_validate(payload)
    except PydanticValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        raise ClassificationError(f"Intent inválido: {first.get('msg', str(e))}", raw_output=raw) from e


class IntentClassifier:
    def __init__(
        self,
        chain: GenerationChain,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ):
        self.chain = chain
        self.temperature = temperature if temperature is not None else settings.OPENAI_TEMPERATURE
        self.max_tokens = max_tokens if max_tokens is not None else settings.OPENAI_MAX_TOKENS

    async def classify(self, query: str) -> Intent:
        log = logger.bind(service="IntentClassifier", trace_id=trace_id_var.get())
        log.info(f"Classifying query: '{query[:80]}'")
        result = await self.chain.generate(
            build_user_prompt(query),
            system=SYSTEM_PROMPT,
            json_mode=True,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        log.debug(f"Raw classification from {result.provider}: {result.text[:300]}")
        intent = parse_intent(result.text)
        log.success(f"Intent: {intent.categoria.value} -> {[a.value for a in intent.acciones]}")
        return intent
