# agente_gateway/services/llm_client.py

import json
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

import httpx
from google import genai
from google.genai import types as genai_types
from loguru import logger
from openai import AsyncOpenAI, OpenAIError

from agente_gateway.core.config import Settings
from agente_gateway.core.exceptions import ProviderError
from agente_gateway.core.logging_config import trace_id_var
from agente_gateway.models.gateway import GenerationResult

# Terminos que piden una respuesta estructurada al fallback estatico
STRUCTURED_TERMS = ("sql", "tabla", "json")
CANNED_STRUCTURED = {"tabla": "Usuarios", "filtros": {}}
CANNED_APOLOGY = (
    "Lo siento, no puedo procesar tu solicitud en este momento debido a limitaciones de la API. "
    "Por favor, intenta más tarde."
)


# --- Cliente Base ---
class BaseLLMClient(ABC):
    provider_name: str

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        json_mode: bool = False,
        temperature: float = 0.1,
        max_tokens: int = 500,
    ) -> str:
        """Devuelve el texto generado o lanza ProviderError."""


# --- OpenAI ---
class OpenAIClient(BaseLLMClient):
    provider_name = "OpenAI"

    def __init__(self, client: Optional[AsyncOpenAI], model: str):
        self.client = client
        self.model = model

    async def generate(self, prompt, system=None, json_mode=False, temperature=0.1, max_tokens=500) -> str:
        if self.client is None:
            raise ProviderError("OpenAI client not initialized (missing API key).", provider=self.provider_name)

        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        kwargs = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
                **kwargs,
            )
        except OpenAIError as e:
            raise ProviderError(f"OpenAI error: {e}", provider=self.provider_name) from e

        content = response.choices[0].message.content if response.choices else None
        return content or ""


# --- Ollama (inferencia local) ---
class OllamaClient(BaseLLMClient):
    provider_name = "Ollama"

    def __init__(self, http: Optional[httpx.AsyncClient], url: str, model: str):
        self.http = http
        self.url = url
        self.model = model

    async def generate(self, prompt, system=None, json_mode=False, temperature=0.1, max_tokens=500) -> str:
        if self.http is None:
            raise ProviderError("Shared HTTP client not available.", provider=self.provider_name)

        full_prompt = f"{system}\n\n{prompt}" if system else prompt
        payload = {"model": self.model, "prompt": full_prompt, "stream": False}
        try:
            response = await self.http.post(self.url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise ProviderError(f"Ollama HTTP {e.response.status_code}: {e.response.text[:200]}", provider=self.provider_name) from e
        except (httpx.RequestError, json.JSONDecodeError) as e:
            raise ProviderError(f"Ollama request failed: {e}", provider=self.provider_name) from e

        return str(data.get("response") or "")


# --- Gemini ---
class GeminiClient(BaseLLMClient):
    provider_name = "Gemini"

    def __init__(self, client: Optional[genai.Client], model: str):
        self.client = client
        self.model = model

    async def generate(self, prompt, system=None, json_mode=False, temperature=0.1, max_tokens=500) -> str:
        if self.client is None:
            raise ProviderError("Gemini client not initialized (missing API key).", provider=self.provider_name)

        config = genai_types.GenerateContentConfig(
            system_instruction=system,
            temperature=temperature,
            max_output_tokens=max_tokens,
            response_mime_type="application/json" if json_mode else None,
        )
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=config,
            )
        except Exception as e:
            # google-genai expone errores propios y de transporte
            raise ProviderError(f"Gemini error: {e}", provider=self.provider_name) from e

        return response.text or ""


def canned_response(prompt: str) -> str:
    """Respuesta estatica: nunca falla."""
    lowered = (prompt or "").lower()
    if any(term in lowered for term in STRUCTURED_TERMS):
        return json.dumps(CANNED_STRUCTURED)
    return CANNED_APOLOGY


class GenerationChain:
    """Prioritized text generation: first non-empty answer wins.

    Every provider failure is logged and skipped; when all of them fail
    the canned response is returned, so ``generate`` never raises.
    """

    CANNED_PROVIDER = "canned"

    def __init__(self, providers: Sequence[BaseLLMClient]):
        self.providers: List[BaseLLMClient] = list(providers)

    async def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        json_mode: bool = False,
        temperature: float = 0.1,
        max_tokens: int = 500,
    ) -> GenerationResult:
        log = logger.bind(service="GenerationChain", trace_id=trace_id_var.get())
        for provider in self.providers:
            log.debug(f"Trying provider {provider.provider_name}...")
            try:
                text = await provider.generate(
                    prompt,
                    system=system,
                    json_mode=json_mode,
                    temperature=temperature,
                    max_tokens=max_tokens,
                )
            except Exception as e:
                log.warning(f"Provider {provider.provider_name} failed: {e}")
                continue
            if text and text.strip():
                log.info(f"Generation served by {provider.provider_name}.")
                return GenerationResult(text=text, provider=provider.provider_name)
            log.warning(f"Provider {provider.provider_name} returned an empty answer.")

        log.error("All generation providers failed. Using canned response.")
        return GenerationResult(text=canned_response(prompt), provider=self.CANNED_PROVIDER)


def build_generation_chain(clients, settings: Settings, openai_model: Optional[str] = None) -> GenerationChain:
    """OpenAI -> Ollama -> Gemini, sobre los handles del lifespan."""
    return GenerationChain([
        OpenAIClient(clients.openai, openai_model or settings.OPENAI_MODEL),
        OllamaClient(clients.http, settings.OLLAMA_API_URL, settings.OLLAMA_MODEL),
        GeminiClient(clients.gemini, settings.GEMINI_MODEL),
    ])
