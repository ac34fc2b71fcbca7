# agente_gateway/core/config.py

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from loguru import logger
from pathlib import Path
from typing import List


def find_dotenv_path(filename: str = '.env', usecwd: bool = False) -> str | None:
    """Walks up from this file (or CWD) looking for a dotenv file."""
    start_dir = Path.cwd() if usecwd else Path(__file__).resolve().parent
    current_dir = start_dir
    for _ in range(10):
        env_path = current_dir / filename
        if env_path.is_file():
            logger.debug(f"Found {filename} file at: {env_path}")
            return str(env_path)
        parent_dir = current_dir.parent
        if parent_dir == current_dir:
            break
        current_dir = parent_dir
    if not usecwd:
        env_path_cwd = Path.cwd() / filename
        if env_path_cwd.is_file():
            logger.debug(f"Found {filename} file at CWD: {env_path_cwd}")
            return str(env_path_cwd)
    logger.debug(f"{filename} not found in parent directories of {start_dir} or CWD.")
    return None


def dotenv_files() -> tuple[str, ...] | None:
    """Existing dotenv files in load order; .env.local overrides .env."""
    found = tuple(p for p in (find_dotenv_path('.env'), find_dotenv_path('.env.local')) if p)
    return found or None


class Settings(BaseSettings):
    PROJECT_NAME: str = "Agente Gateway"
    API_PREFIX: str = ""  # Rutas en la raiz (/supabase, /gemini, ...) por defecto
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]

    # Supabase (backing store)
    SUPABASE_URL: str | None = None
    SUPABASE_KEY: str | None = None

    # OpenAI (clasificador + proveedor primario de texto)
    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_TEXT_MODEL: str = "gpt-3.5-turbo"
    OPENAI_TEMPERATURE: float = 0.1
    OPENAI_MAX_TOKENS: int = 500

    # Ollama local
    OLLAMA_API_URL: str = "http://localhost:11434/api/generate"
    OLLAMA_MODEL: str = "mistral"
    OLLAMA_TIMEOUT_SECONDS: float = 60.0

    # Gemini
    GEMINI_API_KEY: str | None = None
    GEMINI_MODEL: str = "gemini-1.5-pro"

    # Interpretacion de consultas
    QUERY_MAX_ATTEMPTS: int = Field(default=5, ge=1)
    QUERY_RETRY_DELAY_SECONDS: float = Field(default=1.0, ge=0)
    RELATION_MATCH_THRESHOLD: float = Field(default=0.5, ge=0, le=1)
    DIRECT_MATCH_THRESHOLD: float = Field(default=0.8, ge=0, le=1)
    RELATED_TABLES: List[str] = ["Empresa", "Planta", "Encargado"]

    # Correo (Brevo / Sendinblue SMTP relay)
    SMTP_HOSTS: List[str] = ["smtp-relay.sendinblue.com", "smtp-relay.brevo.com"]
    SMTP_PORT: int = 587
    SMTP_TIMEOUT_SECONDS: float = 20.0
    BREVO_USER: str | None = None
    BREVO_PASS: str | None = None

    # Meta / WhatsApp
    META_GRAPH_API_VERSION: str = "v19.0"
    META_ACCESS_TOKEN: str | None = None
    META_PHONE_NUMBER_ID: str | None = None

    model_config = SettingsConfigDict(
        env_file=dotenv_files(),
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=False,
    )


@lru_cache()
def get_settings() -> Settings:
    """Loads and sanity-checks application settings."""
    logger.info("Loading application settings...")
    env_files_found = dotenv_files() or ()
    if env_files_found:
        logger.info(f"Loading environment variables from: {', '.join(env_files_found)}")
    else:
        logger.warning("No .env file found. Loading settings from system environment variables only.")

    settings_instance = Settings()

    if not (settings_instance.SUPABASE_URL and settings_instance.SUPABASE_KEY):
        logger.warning("SUPABASE_URL/SUPABASE_KEY missing. Database-backed routes will answer 503.")

    # Sin claves el fallback chain simplemente salta al siguiente proveedor
    missing_ai = [k for k in ('OPENAI_API_KEY', 'GEMINI_API_KEY') if not getattr(settings_instance, k, None)]
    if missing_ai:
        logger.warning(f"AI provider keys missing ({', '.join(missing_ai)}). Those providers will be skipped.")

    if settings_instance.RELATION_MATCH_THRESHOLD > settings_instance.DIRECT_MATCH_THRESHOLD:
        logger.warning("RELATION_MATCH_THRESHOLD is stricter than DIRECT_MATCH_THRESHOLD; relation lookups will reject more than direct corrections.")

    logger.info("Settings loaded.")
    return settings_instance


settings = get_settings()
