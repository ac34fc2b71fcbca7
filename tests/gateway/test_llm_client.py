# tests/gateway/test_llm_client.py
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from agente_gateway.core.exceptions import ProviderError
from agente_gateway.services.llm_client import (
    CANNED_APOLOGY, GeminiClient, GenerationChain, OllamaClient, OpenAIClient, canned_response,
)
from conftest import FakeLLM

pytestmark = pytest.mark.asyncio


async def test_first_successful_provider_wins():
    first = FakeLLM("primary", ["respuesta primaria"])
    second = FakeLLM("secondary", ["no deberia usarse"])
    result = await GenerationChain([first, second]).generate("hola")
    assert (result.text, result.provider) == ("respuesta primaria", "primary")
    assert second.calls == []


async def test_failures_fall_through_to_third_provider():
    first = FakeLLM("openai", [ProviderError("caido")])
    second = FakeLLM("ollama", [RuntimeError("sin conexion")])
    third = FakeLLM("gemini", ["respuesta gemini"])
    result = await GenerationChain([first, second, third]).generate("hola")
    assert result.provider == "gemini"
    assert len(first.calls) == len(second.calls) == len(third.calls) == 1


async def test_empty_answer_counts_as_failure():
    result = await GenerationChain([FakeLLM("a", ["   "]), FakeLLM("b", ["ok"])]).generate("x")
    assert result.provider == "b"


async def test_all_failing_returns_canned_without_raising():
    chain = GenerationChain([FakeLLM("a", [ProviderError("x")]), FakeLLM("b", [ProviderError("y")])])
    result = await chain.generate("cuéntame un chiste")
    assert result.provider == GenerationChain.CANNED_PROVIDER
    assert result.text == CANNED_APOLOGY


async def test_canned_response_for_structured_prompts():
    assert json.loads(canned_response("genera el SQL de la tabla usuarios")) == {"tabla": "Usuarios", "filtros": {}}
    assert json.loads(canned_response("devuelve JSON")) == {"tabla": "Usuarios", "filtros": {}}
    assert canned_response("hola") == CANNED_APOLOGY


async def test_ollama_client_posts_non_streaming_request():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"response": "desde mistral"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        client = OllamaClient(http, "http://localhost:11434/api/generate", "mistral")
        text = await client.generate("pregunta", system="sistema")

    assert text == "desde mistral"
    assert seen["url"] == "http://localhost:11434/api/generate"
    assert seen["body"] == {"model": "mistral", "prompt": "sistema\n\npregunta", "stream": False}


async def test_ollama_http_error_is_provider_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(503, text="down"))
    async with httpx.AsyncClient(transport=transport) as http:
        with pytest.raises(ProviderError):
            await OllamaClient(http, "http://ollama.test/api/generate", "mistral").generate("x")


async def test_openai_client_uses_json_mode():
    completion = SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content='{"ok": true}'))])
    sdk = MagicMock()
    sdk.chat.completions.create = AsyncMock(return_value=completion)

    text = await OpenAIClient(sdk, "gpt-4o-mini").generate("p", system="s", json_mode=True, temperature=0.1, max_tokens=500)

    assert text == '{"ok": true}'
    kwargs = sdk.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "gpt-4o-mini"
    assert kwargs["response_format"] == {"type": "json_object"}
    assert kwargs["messages"][0] == {"role": "system", "content": "s"}
    assert kwargs["temperature"] == 0.1
    assert kwargs["max_tokens"] == 500


async def test_unconfigured_providers_raise_provider_error():
    with pytest.raises(ProviderError):
        await OpenAIClient(None, "gpt-4o-mini").generate("x")
    with pytest.raises(ProviderError):
        await GeminiClient(None, "gemini-1.5-pro").generate("x")
    with pytest.raises(ProviderError):
        await OllamaClient(None, "http://ollama.test", "mistral").generate("x")


async def test_gemini_client_reads_text():
    sdk = MagicMock()
    sdk.aio.models.generate_content = AsyncMock(return_value=SimpleNamespace(text="hola desde gemini"))
    text = await GeminiClient(sdk, "gemini-1.5-pro").generate("x", system="s")
    assert text == "hola desde gemini"
    assert sdk.aio.models.generate_content.call_args.kwargs["model"] == "gemini-1.5-pro"
