# agente_gateway/api/endpoints/supabase.py

from fastapi import APIRouter, Body, Depends
from loguru import logger

from agente_gateway.api.deps import get_gateway_service
from agente_gateway.api.responses import error_response, responder
from agente_gateway.core.logging_config import trace_id_var
from agente_gateway.models.gateway import SupabaseRequest
from agente_gateway.modules.gateway.services import GatewayService

router = APIRouter()


@router.post(
    "",
    summary="Consulta en lenguaje natural (consultaAI) o acción directa sobre una tabla",
)
async def handle_supabase_request(
    payload: SupabaseRequest = Body(...),
    gateway: GatewayService = Depends(get_gateway_service),
):
    log = logger.bind(trace_id=trace_id_var.get(), api_endpoint="/supabase POST")
    try:
        status_code, data = await gateway.handle(payload)
    except Exception as e:
        log.warning(f"/supabase failed: {type(e).__name__}: {e}")
        return error_response(e)
    return responder(status_code, data)
