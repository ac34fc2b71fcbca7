# tests/api/test_relay_api.py
from unittest.mock import AsyncMock

import httpx
import pytest

from agente_gateway.core.config import Settings
from agente_gateway.core.exceptions import ProviderError
from agente_gateway.services.whatsapp_service import WhatsAppService

pytestmark = pytest.mark.asyncio

MAIL = {"from": "soporte@baechler.pe", "to": "cliente@gloria.pe", "subject": "Reporte", "message": "Listo."}


async def test_mail_success(build_test_services, client_for):
    services, _, _ = build_test_services(["{}"])
    services.mail.send = AsyncMock(return_value=("<abc@baechler.pe>", "smtp-relay.brevo.com"))
    response = await client_for(services).post("/mail", json=MAIL)

    assert response.status_code == 200
    assert response.json()["data"] == {"success": True, "messageId": "<abc@baechler.pe>", "host": "smtp-relay.brevo.com"}
    sent = services.mail.send.await_args.args[0]
    assert sent.from_address == "soporte@baechler.pe"


async def test_mail_missing_fields_is_400(build_test_services, client_for):
    services, _, _ = build_test_services(["{}"])
    response = await client_for(services).post("/mail", json={"to": "cliente@gloria.pe"})
    assert response.status_code == 400
    assert "Faltan campos requeridos" in response.json()["data"]["error"]


async def test_mail_relay_failure_is_500(build_test_services, client_for):
    services, _, _ = build_test_services(["{}"])
    services.mail.send = AsyncMock(side_effect=ProviderError(
        "No se pudo enviar el correo", provider="smtp", details={"details": "timed out"},
    ))
    response = await client_for(services).post("/mail", json=MAIL)

    assert response.status_code == 500
    assert response.json()["data"] == {"error": "No se pudo enviar el correo", "details": "timed out"}


async def test_whatsapp_send_and_status(build_test_services, client_for):
    def handler(request):
        return httpx.Response(200, json={"messages": [{"id": "wamid.XYZ"}]})

    services, _, _ = build_test_services(["{}"])
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        services.whatsapp = WhatsAppService(http, Settings(META_ACCESS_TOKEN="t", META_PHONE_NUMBER_ID="42"))
        client = client_for(services)

        response = await client.post("/whatsapp", json={"phone": "51987654321", "message": "Reporte listo"})
        assert response.status_code == 200
        assert response.json()["data"]["wami"] == "wamid.XYZ"

        status = await client.get("/whatsapp/status")
        assert status.status_code == 200
        assert status.json()["connection"] == "ready"
        assert status.json()["messages_sent"] == 1


async def test_whatsapp_unconfigured(build_test_services, client_for):
    services, _, _ = build_test_services(["{}"])
    services.whatsapp = WhatsAppService(None, Settings(META_ACCESS_TOKEN=None, META_PHONE_NUMBER_ID=None))
    client = client_for(services)

    response = await client.post("/whatsapp", json={"phone": "51987654321", "message": "hola"})
    assert response.status_code == 500
    assert response.json()["status"] == "error"

    missing = await client.post("/whatsapp", json={"phone": "51987654321"})
    assert missing.status_code == 400

    status = await client.get("/whatsapp/status")
    assert status.json()["connection"] == "unconfigured"
