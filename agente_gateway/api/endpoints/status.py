# agente_gateway/api/endpoints/status.py

import time as process_time
from datetime import datetime, timezone
from typing import Dict, Literal, Optional

from fastapi import APIRouter, Request
from loguru import logger
from pydantic import BaseModel, Field

from agente_gateway.core.logging_config import trace_id_var

PROCESS_START_TIME = process_time.monotonic()

router = APIRouter()


class ComponentStatus(BaseModel):
    status: Literal["ok", "unavailable"] = "ok"
    message: Optional[str] = None


class HealthCheckResponse(BaseModel):
    overall_status: Literal["ok", "degraded"] = "ok"
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    uptime_seconds: float = Field(..., description="Process uptime in seconds")
    components: Dict[str, ComponentStatus]


@router.get(
    "",
    response_model=HealthCheckResponse,
    response_model_exclude_none=True,
    tags=["Status & Health"],
    summary="Application health and provider availability",
)
async def get_application_status(request: Request):
    log = logger.bind(trace_id=trace_id_var.get(), api_endpoint="/status GET")
    services = getattr(request.app.state, "services", None)

    components: Dict[str, ComponentStatus] = {}
    availability = services.clients.describe() if services is not None else {}
    for name in ("supabase", "openai", "gemini", "http"):
        if availability.get(name):
            components[name] = ComponentStatus(status="ok")
        else:
            components[name] = ComponentStatus(status="unavailable", message="Client not configured")

    # Sin Supabase el gateway no puede responder consultas
    overall = "ok" if components["supabase"].status == "ok" else "degraded"
    log.info(f"Status check: {overall}")
    return HealthCheckResponse(
        overall_status=overall,
        uptime_seconds=process_time.monotonic() - PROCESS_START_TIME,
        components=components,
    )
