# agente_gateway/core/clients.py

from contextlib import AbstractAsyncContextManager
from typing import Any, Optional

import httpx
from loguru import logger
from openai import AsyncOpenAI
from google import genai
from supabase import acreate_client, AsyncClient

from agente_gateway.core.config import Settings


class ProviderClients(AbstractAsyncContextManager):
    """Handles de proveedores externos con vida de proceso.

    Se crean una sola vez (lifespan de FastAPI) y se inyectan en los
    componentes; ninguno se reconstruye por request.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.supabase: Optional[AsyncClient] = None
        self.openai: Optional[AsyncOpenAI] = None
        self.gemini: Optional[genai.Client] = None
        self.http: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect()

    async def connect(self):
        s = self.settings
        # Cliente HTTP compartido (Ollama, Meta Graph API)
        self.http = httpx.AsyncClient(
            timeout=httpx.Timeout(s.OLLAMA_TIMEOUT_SECONDS, connect=10.0),
            limits=httpx.Limits(max_connections=50, max_keepalive_connections=10),
        )

        if s.SUPABASE_URL and s.SUPABASE_KEY:
            logger.info("Connecting to Supabase...")
            try:
                self.supabase = await acreate_client(s.SUPABASE_URL, s.SUPABASE_KEY)
                logger.success("Supabase async client ready.")
            except Exception as e:
                # Arrancar igual; las rutas de base responderan 503
                logger.error(f"Could not create Supabase client: {e}")
                self.supabase = None
        else:
            logger.warning("Supabase not configured. Skipping client creation.")

        if s.OPENAI_API_KEY:
            self.openai = AsyncOpenAI(api_key=s.OPENAI_API_KEY)
            logger.info(f"OpenAI client initialized for API Key: ...{s.OPENAI_API_KEY[-4:]}")

        if s.GEMINI_API_KEY:
            self.gemini = genai.Client(api_key=s.GEMINI_API_KEY)
            logger.info("Gemini client initialized.")

    async def disconnect(self):
        logger.info("Closing provider clients...")
        if self.openai is not None:
            try:
                await self.openai.close()
            except Exception as e:
                logger.error(f"Error closing OpenAI client: {e}")
        if self.http is not None:
            try:
                await self.http.aclose()
            except Exception as e:
                logger.error(f"Error closing shared HTTP client: {e}")
        self.supabase = None
        self.openai = None
        self.gemini = None
        self.http = None
        logger.info("Provider clients closed.")

    def describe(self) -> dict[str, Any]:
        """Disponibilidad de cada handle, para /status."""
        return {
            "supabase": self.supabase is not None,
            "openai": self.openai is not None,
            "gemini": self.gemini is not None,
            "http": self.http is not None,
        }
