# agente_gateway/modules/gateway/services.py

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from loguru import logger

from agente_gateway.core.config import Settings
from agente_gateway.core.exceptions import ValidationError
from agente_gateway.core.logging_config import trace_id_var
from agente_gateway.models.gateway import ActionResult, Interpretation, SupabaseRequest
from agente_gateway.modules.gateway.behavior import Behavior, behavior_response, detect_behavior
from agente_gateway.modules.gateway.classifier import IntentClassifier
from agente_gateway.modules.gateway.dispatcher import ServiceDispatcher
from agente_gateway.modules.gateway.orchestrator import RetryOrchestrator
from agente_gateway.modules.query.resolver import QueryResolver
from agente_gateway.modules.records.services import build_record_handlers
from agente_gateway.services.llm_client import GenerationChain, build_generation_chain
from agente_gateway.services.mail_service import MailService
from agente_gateway.services.whatsapp_service import WhatsAppService

AI_SERVICE = "consultaAI"
DEFERRED_MESSAGE = "Consulta identificada. Proporciona parámetros adicionales si es necesario."


def flatten_rows(results: List[ActionResult]) -> List[Any]:
    """Filas de las acciones exitosas, en orden."""
    rows: List[Any] = []
    for result in results:
        if result.status >= 300 or result.data is None:
            continue
        if isinstance(result.data, list):
            rows.extend(result.data)
        else:
            rows.append(result.data)
    return rows


class GatewayService:
    """Entrada de POST /supabase: comportamiento general, consultaAI o llamada directa."""

    def __init__(self, orchestrator: RetryOrchestrator, dispatcher: ServiceDispatcher):
        self.orchestrator = orchestrator
        self.dispatcher = dispatcher

    async def interpret_and_run(self, query: str, params: Optional[Dict[str, Any]] = None) -> Tuple[int, Dict[str, Any]]:
        """Clasifica, resuelve y (si es de solo lectura) ejecuta las acciones.

        Devuelve (status_code, data). Si todas las acciones fallan, el status
        es el de la primera accion fallida y ``data`` lleva su error.
        """
        interpretation: Interpretation = await self.orchestrator.run(query, params)
        intent = interpretation.intent
        acciones = [a.value for a in intent.acciones]

        if not interpretation.auto_ejecutable:
            return 200, {
                "identificacion": {
                    "categoria": intent.categoria.value,
                    "acciones": acciones,
                    "explicacion": intent.explicacion,
                    "parametros_sugeridos": intent.parametros_sugeridos,
                },
                "mensaje": DEFERRED_MESSAGE,
            }

        results = interpretation.resultados
        data: Dict[str, Any] = {
            "identificacion": {
                "categoria": intent.categoria.value,
                "acciones": acciones,
                "explicacion": intent.explicacion,
                "parametros_utilizados": interpretation.parametros,
            },
            "datos": flatten_rows(results),
            "resultados": [r.model_dump() for r in results],
            "intentos": interpretation.intentos,
        }
        if results and all(r.status >= 400 for r in results):
            first = results[0]
            error = first.data.get("error") if isinstance(first.data, dict) else None
            return first.status, {"error": error or f"La acción '{first.accion}' falló", **data}
        return 200, data

    async def handle(self, request: SupabaseRequest) -> Tuple[int, Any]:
        """Devuelve (status_code, data) para el envelope de respuesta."""
        log = logger.bind(service="GatewayService", trace_id=trace_id_var.get())
        if not request.service:
            raise ValidationError("Falta el campo 'service'")
        if request.content is None:
            raise ValidationError("Falta el campo 'content'")

        content = request.content
        log.info(f"[{request.service}] Acción: {content.action or AI_SERVICE} | Query: {content.query or '-'}")

        if request.service == AI_SERVICE:
            if not content.query:
                raise ValidationError("Falta el campo 'query'")
            # Saludos y preguntas de capacidades no pasan por el modelo
            behavior = detect_behavior(content.query)
            if behavior != Behavior.CONSULTA_NORMAL:
                log.info(f"General behavior detected: {behavior.value}")
                return 200, behavior_response(behavior)
            return await self.interpret_and_run(content.query, content.params)

        category, action = self.dispatcher.resolve_action(request.service, content.action)
        result = await self.dispatcher.run_action(category, action, content.params)
        return result.status, result.data


class GatewayServices:
    """Servicios de la aplicacion construidos sobre los handles del lifespan."""

    def __init__(
        self,
        clients,
        settings: Settings,
        generation_chain: Optional[GenerationChain] = None,
        text_chain: Optional[GenerationChain] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.clients = clients
        self.settings = settings
        self.generation_chain = generation_chain or build_generation_chain(clients, settings)
        self.text_chain = text_chain or build_generation_chain(clients, settings, openai_model=settings.OPENAI_TEXT_MODEL)
        self.mail = MailService(settings)
        self.whatsapp = WhatsAppService(clients.http, settings)

        self.gateway: Optional[GatewayService] = None
        if clients.supabase is not None:
            resolver = QueryResolver(
                clients.supabase,
                related_tables=settings.RELATED_TABLES,
                relation_threshold=settings.RELATION_MATCH_THRESHOLD,
                direct_threshold=settings.DIRECT_MATCH_THRESHOLD,
            )
            dispatcher = ServiceDispatcher(build_record_handlers(clients.supabase, resolver))
            orchestrator = RetryOrchestrator(
                IntentClassifier(
                    self.generation_chain,
                    temperature=settings.OPENAI_TEMPERATURE,
                    max_tokens=settings.OPENAI_MAX_TOKENS,
                ),
                resolver,
                dispatcher=dispatcher,
                max_attempts=settings.QUERY_MAX_ATTEMPTS,
                delay=settings.QUERY_RETRY_DELAY_SECONDS,
                sleep=sleep,
            )
            self.gateway = GatewayService(orchestrator, dispatcher)
            logger.success("Gateway pipeline ready (classifier, resolver, dispatcher).")
        else:
            logger.warning("Gateway pipeline disabled: Supabase client not available.")


def build_services(clients, settings: Settings, **overrides) -> GatewayServices:
    return GatewayServices(clients, settings, **overrides)
