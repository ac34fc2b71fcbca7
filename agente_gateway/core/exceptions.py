# agente_gateway/core/exceptions.py

from typing import Any, Dict, Optional


class GatewayError(Exception):
    """Base de todos los errores de dominio del gateway."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.message, **self.details}


class ValidationError(GatewayError):
    """Entrada invalida; se responde 400 sin llamar a ningun proveedor."""

    status_code = 400


class NotFoundError(GatewayError):
    status_code = 404


class ClassificationError(GatewayError):
    """El modelo devolvio algo que no es un Intent valido."""

    status_code = 400

    def __init__(self, message: str, raw_output: Optional[str] = None):
        super().__init__(message, {"respuesta_raw": raw_output} if raw_output is not None else None)
        self.raw_output = raw_output


class ResolutionError(GatewayError):
    """Un filtro no pudo resolverse contra los valores reales de la base."""

    status_code = 422

    def __init__(self, message: str, filter_key: Optional[str] = None, value: Any = None):
        super().__init__(message)
        self.filter_key = filter_key
        self.value = value


class ProviderError(GatewayError):
    """Fallo de un servicio externo (LLM, SMTP, Meta...)."""

    status_code = 500

    def __init__(self, message: str, provider: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.provider = provider


class QueryError(ProviderError):
    """Error devuelto por el backing store (PostgREST)."""

    def __init__(self, message: str, table: Optional[str] = None, code: Optional[str] = None):
        super().__init__(message, provider="supabase")
        self.table = table
        self.code = code


class ActionFailedError(GatewayError):
    """Una accion ejecutada automaticamente fallo con error de proveedor."""

    def __init__(self, accion: str, status_code: int, payload: Optional[Dict[str, Any]] = None):
        payload = dict(payload or {})
        message = str(payload.pop("error", f"La acción '{accion}' falló"))
        super().__init__(message, payload)
        self.accion = accion
        self.status_code = status_code


class RetryExhaustedError(GatewayError):
    status_code = 500

    def __init__(self, last_error: BaseException, attempts: int):
        super().__init__(f"Todos los reintentos fallaron: {last_error}")
        self.last_error = last_error
        self.attempts = attempts
