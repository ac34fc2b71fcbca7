# agente_gateway/models/mail.py

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SendMailPayloadAPI(BaseModel):
    """Payload de POST /mail. Los campos se validan en el servicio para responder 400."""

    from_address: Optional[str] = Field(None, alias="from")
    to: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={"example": {"from": "soporte@empresa.com", "to": "cliente@correo.com", "subject": "Reporte", "message": "Adjuntamos el reporte."}},
    )


class SendMailResponseAPI(BaseModel):
    success: bool = True
    messageId: str
    host: Optional[str] = None
