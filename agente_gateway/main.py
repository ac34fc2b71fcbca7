# agente_gateway/main.py

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from agente_gateway.api.v1 import api_router
from agente_gateway.core.clients import ProviderClients
from agente_gateway.core.config import settings
from agente_gateway.core.logging_config import add_trace_id_middleware, setup_logging
from agente_gateway.modules.gateway.services import GatewayServices, build_services


def create_app(services: Optional[GatewayServices] = None) -> FastAPI:
    """App factory. ``services`` ya construidos evitan crear clientes reales (tests)."""
    setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if services is not None:
            app.state.services = services
            yield
            return

        logger.info(f"Starting {settings.PROJECT_NAME}...")
        async with ProviderClients(settings) as clients:
            app.state.services = build_services(clients, settings)
            logger.success("Application startup complete.")
            yield
            logger.info("Shutting down...")
        app.state.services = None

    app = FastAPI(
        title=settings.PROJECT_NAME,
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        lifespan=lifespan,
    )
    # Disponible antes del lifespan (ASGITransport no lo dispara)
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(add_trace_id_middleware)

    app.include_router(api_router, prefix=settings.API_PREFIX)
    return app


app = create_app()


def run():
    """Entry point de consola: agente-gateway."""
    import uvicorn

    uvicorn.run("agente_gateway.main:app", host="0.0.0.0", port=8000, log_config=None)
