# agente_gateway/models/whatsapp.py

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class SendWhatsAppPayloadAPI(BaseModel):
    """Payload de POST /whatsapp."""

    phone: Optional[str] = Field(None, description="Número destino (solo dígitos, sin '+').")
    message: Optional[str] = Field(None, description="Texto del mensaje.")

    model_config = ConfigDict(json_schema_extra={"example": {"phone": "51987654321", "message": "Su reporte está listo."}})


class SendWhatsAppResponseAPI(BaseModel):
    provider: str = "WhatsApp"
    status: str = "Mensaje enviado"
    phone: str
    message: str
    wami: Optional[str] = Field(None, description="WhatsApp Message ID devuelto por Meta.")


class WhatsAppSessionState(BaseModel):
    """Estado de la sesion de mensajeria, visible en GET /whatsapp/status."""

    connection: Literal["unconfigured", "ready", "error"] = "unconfigured"
    phone_number_id: Optional[str] = None
    messages_sent: int = 0
    last_message_id: Optional[str] = None
    last_sent_at: Optional[datetime] = None
    last_error: Optional[str] = None
