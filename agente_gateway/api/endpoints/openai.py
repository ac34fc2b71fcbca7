# agente_gateway/api/endpoints/openai.py

from fastapi import APIRouter, Body, Depends
from loguru import logger

from agente_gateway.api.deps import get_services
from agente_gateway.api.responses import responder
from agente_gateway.core.logging_config import trace_id_var
from agente_gateway.models.gateway import OpenAIRequest
from agente_gateway.modules.gateway.prompts import TEXT_ASSISTANT_PROMPT
from agente_gateway.modules.gateway.services import GatewayServices

router = APIRouter()


@router.post("", summary="Completion de texto (OpenAI con fallback a Ollama/Gemini)")
async def handle_openai_request(
    payload: OpenAIRequest = Body(...),
    services: GatewayServices = Depends(get_services),
):
    log = logger.bind(trace_id=trace_id_var.get(), api_endpoint="/openai POST")
    if not payload.prompt:
        return responder(400, {"error": "Falta el campo 'prompt'"})

    # La cadena nunca lanza: en el peor caso responde el texto estatico
    result = await services.text_chain.generate(
        payload.prompt,
        system=payload.system or TEXT_ASSISTANT_PROMPT,
        json_mode=payload.json_mode,
        temperature=0.7,
        max_tokens=1000,
    )
    log.info(f"Completion served by {result.provider}")
    return responder(200, {"respuesta": result.text, "proveedor": result.provider})
