# agente_gateway/api/responses.py

from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from loguru import logger

from agente_gateway.core.exceptions import ClassificationError, GatewayError, RetryExhaustedError
from agente_gateway.models.gateway import GatewayEnvelope


def responder(status_code: int, data: Any) -> JSONResponse:
    """Envelope {status, timestamp, data} comun a todas las rutas proxy."""
    envelope = GatewayEnvelope(status="success" if status_code < 400 else "error", data=data)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(envelope))


def error_response(exc: Exception) -> JSONResponse:
    """Traduce errores de dominio a envelope; el traceback solo va al log."""
    if isinstance(exc, RetryExhaustedError):
        last = exc.last_error
        if isinstance(last, ClassificationError):
            return responder(400, {**last.to_payload(), "intentos": exc.attempts})
        return responder(500, {"error": exc.message, "intentos": exc.attempts})
    if isinstance(exc, GatewayError):
        return responder(exc.status_code, exc.to_payload())
    logger.exception(f"Unhandled error: {exc}")
    return responder(500, {"error": "Error interno del servidor"})
