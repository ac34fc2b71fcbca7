# agente_gateway/api/endpoints/whatsapp.py

from fastapi import APIRouter, Body, Depends
from loguru import logger

from agente_gateway.api.deps import get_services
from agente_gateway.api.responses import error_response, responder
from agente_gateway.core.logging_config import trace_id_var
from agente_gateway.models.whatsapp import SendWhatsAppPayloadAPI, SendWhatsAppResponseAPI, WhatsAppSessionState
from agente_gateway.modules.gateway.services import GatewayServices

router = APIRouter()


@router.post("", summary="Enviar mensaje de texto por WhatsApp (Meta Graph API)")
async def send_whatsapp_message(
    payload: SendWhatsAppPayloadAPI = Body(...),
    services: GatewayServices = Depends(get_services),
):
    log = logger.bind(trace_id=trace_id_var.get(), api_endpoint="/whatsapp POST")
    try:
        _, wami = await services.whatsapp.send_text(payload.phone, payload.message)
    except Exception as e:
        log.warning(f"/whatsapp failed: {e}")
        return error_response(e)
    response = SendWhatsAppResponseAPI(phone=payload.phone, message=payload.message, wami=wami)
    return responder(200, response.model_dump())


@router.get("/status", response_model=WhatsAppSessionState, summary="Estado de la sesión de WhatsApp")
async def get_whatsapp_status(services: GatewayServices = Depends(get_services)):
    return services.whatsapp.state
