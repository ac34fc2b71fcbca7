# agente_gateway/api/endpoints/mail.py

from fastapi import APIRouter, Body, Depends
from loguru import logger

from agente_gateway.api.deps import get_services
from agente_gateway.api.responses import error_response, responder
from agente_gateway.core.logging_config import trace_id_var
from agente_gateway.models.mail import SendMailPayloadAPI, SendMailResponseAPI
from agente_gateway.modules.gateway.services import GatewayServices

router = APIRouter()


@router.post("", summary="Enviar correo por el relay SMTP (con host alternativo)")
async def send_mail(
    payload: SendMailPayloadAPI = Body(...),
    services: GatewayServices = Depends(get_services),
):
    log = logger.bind(trace_id=trace_id_var.get(), api_endpoint="/mail POST")
    try:
        message_id, host = await services.mail.send(payload)
    except Exception as e:
        log.warning(f"/mail failed: {e}")
        return error_response(e)
    return responder(200, SendMailResponseAPI(messageId=message_id, host=host).model_dump())
