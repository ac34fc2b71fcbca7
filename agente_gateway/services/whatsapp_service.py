# agente_gateway/services/whatsapp_service.py

import json
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

import httpx
from loguru import logger

from agente_gateway.core.config import Settings
from agente_gateway.core.exceptions import ProviderError, ValidationError
from agente_gateway.core.logging_config import trace_id_var
from agente_gateway.models.whatsapp import WhatsAppSessionState

META_GRAPH_API_HOST = "https://graph.facebook.com"
NON_DIGITS = re.compile(r"\D")


class WhatsAppService:
    """Envia mensajes de texto via Meta Graph API y lleva el estado de sesion."""

    def __init__(self, http: Optional[httpx.AsyncClient], settings: Settings):
        self.http = http
        self.access_token = settings.META_ACCESS_TOKEN
        self.phone_number_id = settings.META_PHONE_NUMBER_ID
        self.base_url = f"{META_GRAPH_API_HOST}/{settings.META_GRAPH_API_VERSION}"
        configured = bool(self.access_token and self.phone_number_id)
        self.state = WhatsAppSessionState(
            connection="ready" if configured else "unconfigured",
            phone_number_id=self.phone_number_id,
        )

    def _record_failure(self, message: str):
        self.state.connection = "error"
        self.state.last_error = message

    async def send_text(self, phone: Optional[str], message: Optional[str]) -> Tuple[bool, Optional[str]]:
        """Envia un texto. Devuelve (True, wami) si Meta acepta el mensaje."""
        if not phone or not message:
            raise ValidationError("Faltan campos requeridos (phone, message)")
        recipient = NON_DIGITS.sub("", phone)
        if not recipient:
            raise ValidationError("El número de teléfono no es válido")

        log = logger.bind(trace_id=trace_id_var.get(), service="WhatsAppService", recipient=recipient)

        if not (self.access_token and self.phone_number_id):
            log.critical("WhatsApp API credentials (Token, Phone ID) missing. Cannot send message.")
            raise ProviderError("WhatsApp no está configurado", provider="whatsapp")
        if self.http is None:
            raise ProviderError("Cliente HTTP no disponible", provider="whatsapp")

        api_url = f"{self.base_url}/{self.phone_number_id}/messages"
        headers = {"Authorization": f"Bearer {self.access_token}", "Content-Type": "application/json"}
        payload = {
            "messaging_product": "whatsapp",
            "to": recipient,
            "type": "text",
            "text": {"preview_url": False, "body": message},
        }

        log.info("Attempting to send WhatsApp text message via Meta API...")
        try:
            response = await self.http.post(api_url, headers=headers, json=payload)
        except httpx.RequestError as e:
            log.error(f"Network error calling Meta API: {e}")
            self._record_failure(str(e))
            raise ProviderError(f"Error de red con WhatsApp: {e}", provider="whatsapp") from e

        response_data: Dict[str, Any] = {}
        try:
            response_data = response.json()
        except json.JSONDecodeError:
            log.error(f"Meta API returned non-JSON response (Status: {response.status_code}): {response.text[:300]}")

        if not (200 <= response.status_code < 300):
            error_msg = response_data.get("error", {}).get("message") if isinstance(response_data.get("error"), dict) else None
            error_msg = error_msg or f"HTTP {response.status_code}"
            log.error(f"Meta API rejected message: {error_msg}")
            self._record_failure(error_msg)
            raise ProviderError(f"WhatsApp rechazó el mensaje: {error_msg}", provider="whatsapp")

        wami = (response_data.get("messages") or [{}])[0].get("id")
        self.state.connection = "ready"
        self.state.messages_sent += 1
        self.state.last_message_id = wami
        self.state.last_sent_at = datetime.now(timezone.utc)
        self.state.last_error = None
        if wami:
            log.success(f"WhatsApp message accepted by Meta API. WAMI: {wami}")
        else:
            log.warning("Meta API returned 2xx status but no WAMI found in response.")
        return True, wami
