# agente_gateway/api/endpoints/gemini.py

from fastapi import APIRouter, Body, Depends
from loguru import logger

from agente_gateway.api.deps import get_services
from agente_gateway.api.responses import error_response, responder
from agente_gateway.core.exceptions import ValidationError
from agente_gateway.core.logging_config import trace_id_var
from agente_gateway.models.gateway import GeminiRequest
from agente_gateway.modules.gateway.prompts import TEXT_ASSISTANT_PROMPT
from agente_gateway.modules.gateway.services import GatewayServices

router = APIRouter()

INIT_TEXT = "initText"


async def _dispatch(payload: GeminiRequest, services: GatewayServices):
    if not payload.service:
        raise ValidationError("Falta el campo 'service'")
    if payload.content is None:
        raise ValidationError("Falta el campo 'content'")
    content = payload.content
    if content.action != INIT_TEXT:
        raise ValidationError(f"Acción '{content.action}' no disponible en servicio '{payload.service}'")
    if not content.text:
        raise ValidationError("Falta el campo 'prompt'")

    if payload.service == "text":
        result = await services.text_chain.generate(content.text, system=TEXT_ASSISTANT_PROMPT, temperature=0.7, max_tokens=1000)
        return 200, {"respuesta": result.text, "proveedor": result.provider}

    if payload.service == "supabase":
        if services.gateway is None:
            raise ValidationError("Servicio 'supabase' no disponible: base de datos no configurada")
        return await services.gateway.interpret_and_run(content.text, content.params)

    if payload.service == "ui":
        raise ValidationError("La generación de componentes UI no está soportada")

    raise ValidationError(f"Servicio '{payload.service}' no disponible")


@router.post("", summary="Texto libre o consulta a base de datos vía cadena de IA")
async def handle_gemini_request(
    payload: GeminiRequest = Body(...),
    services: GatewayServices = Depends(get_services),
):
    log = logger.bind(trace_id=trace_id_var.get(), api_endpoint="/gemini POST")
    try:
        status_code, data = await _dispatch(payload, services)
    except Exception as e:
        log.warning(f"/gemini failed: {type(e).__name__}: {e}")
        return error_response(e)
    return responder(status_code, data)
