# tests/services/test_whatsapp_service.py
import json

import httpx
import pytest

from agente_gateway.core.config import Settings
from agente_gateway.core.exceptions import ProviderError, ValidationError
from agente_gateway.services.whatsapp_service import WhatsAppService

pytestmark = pytest.mark.asyncio


@pytest.fixture
def meta_settings():
    return Settings(META_ACCESS_TOKEN="meta-token", META_PHONE_NUMBER_ID="123456789", META_GRAPH_API_VERSION="v19.0")


def mock_http(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


async def test_send_text_posts_to_graph_api(meta_settings):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"messages": [{"id": "wamid.HBgL"}]})

    async with mock_http(handler) as http:
        service = WhatsAppService(http, meta_settings)
        ok, wami = await service.send_text("+51 987 654 321", "Su reporte está listo")

    assert (ok, wami) == (True, "wamid.HBgL")
    assert seen["url"] == "https://graph.facebook.com/v19.0/123456789/messages"
    assert seen["auth"] == "Bearer meta-token"
    assert seen["body"]["to"] == "51987654321"
    assert seen["body"]["text"]["body"] == "Su reporte está listo"
    assert service.state.connection == "ready"
    assert service.state.messages_sent == 1
    assert service.state.last_message_id == "wamid.HBgL"
    assert service.state.last_sent_at is not None


async def test_rejection_is_provider_error_and_recorded(meta_settings):
    def handler(request):
        return httpx.Response(400, json={"error": {"message": "Invalid parameter", "code": 100}})

    async with mock_http(handler) as http:
        service = WhatsAppService(http, meta_settings)
        with pytest.raises(ProviderError, match="Invalid parameter"):
            await service.send_text("51987654321", "hola")

    assert service.state.connection == "error"
    assert service.state.last_error == "Invalid parameter"
    assert service.state.messages_sent == 0


async def test_network_error_is_provider_error(meta_settings):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with mock_http(handler) as http:
        service = WhatsAppService(http, meta_settings)
        with pytest.raises(ProviderError):
            await service.send_text("51987654321", "hola")
    assert service.state.connection == "error"


@pytest.mark.parametrize("phone, message", [(None, "hola"), ("51987654321", ""), ("abc", "hola")])
async def test_invalid_input_is_validation_error(meta_settings, phone, message):
    service = WhatsAppService(None, meta_settings)
    with pytest.raises(ValidationError):
        await service.send_text(phone, message)


async def test_unconfigured_service():
    service = WhatsAppService(None, Settings(META_ACCESS_TOKEN=None, META_PHONE_NUMBER_ID=None))
    assert service.state.connection == "unconfigured"
    with pytest.raises(ProviderError, match="no está configurado"):
        await service.send_text("51987654321", "hola")
