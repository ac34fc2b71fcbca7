# agente_gateway/modules/gateway/orchestrator.py

import asyncio
from typing import Any, Awaitable, Callable, Mapping, Optional

from loguru import logger
from tenacity import AsyncRetrying, RetryError, RetryCallState, retry_if_not_exception_type, stop_after_attempt, wait_fixed

from agente_gateway.core.config import settings
from agente_gateway.core.exceptions import ActionFailedError, RetryExhaustedError, ValidationError
from agente_gateway.core.logging_config import trace_id_var
from agente_gateway.models.gateway import Interpretation
from agente_gateway.modules.gateway.catalog import SEARCH_ACTIONS, is_auto_executable, table_for
from agente_gateway.modules.gateway.classifier import IntentClassifier
from agente_gateway.modules.gateway.dispatcher import ServiceDispatcher
from agente_gateway.modules.query.resolver import QueryResolver


class RetryOrchestrator:
    """Classify, resolve and run read-only actions with a bounded, fixed-delay retry.

    Any failure inside an attempt (bad model output, unresolved filter,
    store error in the final query) triggers a new attempt after ``delay``
    seconds. ValidationError is never retried. After the last attempt a
    RetryExhaustedError carries the final exception.
    """

    def __init__(
        self,
        classifier: IntentClassifier,
        resolver: QueryResolver,
        dispatcher: Optional[ServiceDispatcher] = None,
        max_attempts: Optional[int] = None,
        delay: Optional[float] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.classifier = classifier
        self.resolver = resolver
        self.dispatcher = dispatcher
        self.max_attempts = max_attempts or settings.QUERY_MAX_ATTEMPTS
        self.delay = delay if delay is not None else settings.QUERY_RETRY_DELAY_SECONDS
        self.sleep = sleep

    async def _attempt(self, query: str, params: Mapping[str, Any], attempt: int) -> Interpretation:
        intent = await self.classifier.classify(query)
        # Lo que envia el cliente pisa lo sugerido por la IA
        parametros = {**intent.parametros_sugeridos, **params}
        auto = is_auto_executable(intent.acciones)

        filtros = None
        if auto and any(a in SEARCH_ACTIONS for a in intent.acciones):
            filtros = await self.resolver.plan(table_for(intent.categoria), parametros)

        interpretation = Interpretation(
            intent=intent,
            parametros=parametros,
            filtros=filtros,
            auto_ejecutable=auto,
            intentos=attempt,
        )
        if auto and self.dispatcher is not None:
            interpretation.resultados = await self.dispatcher.dispatch(interpretation)
            # Solo lectura: repetir es seguro; errores del store o proveedor se reintentan
            for result in interpretation.resultados:
                if result.status >= 500:
                    payload = result.data if isinstance(result.data, dict) else {"error": str(result.data)}
                    raise ActionFailedError(result.accion, result.status, payload)
        return interpretation

    def _log_retry(self, retry_state: RetryCallState):
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.bind(service="RetryOrchestrator", trace_id=trace_id_var.get()).warning(
            f"Attempt {retry_state.attempt_number}/{self.max_attempts} failed: {type(error).__name__}: {error}. "
            f"Retrying in {self.delay}s."
        )

    async def run(self, query: str, params: Optional[Mapping[str, Any]] = None) -> Interpretation:
        log = logger.bind(service="RetryOrchestrator", trace_id=trace_id_var.get())
        params = dict(params or {})

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.delay),
            retry=retry_if_not_exception_type(ValidationError),
            sleep=self.sleep,
            before_sleep=self._log_retry,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    number = attempt.retry_state.attempt_number
                    log.info(f"Attempt {number}/{self.max_attempts} for query '{query[:60]}'")
                    interpretation = await self._attempt(query, params, number)
        except RetryError as e:
            last_error = e.last_attempt.exception()
            log.error(f"All {self.max_attempts} attempts failed. Last error: {last_error}")
            raise RetryExhaustedError(last_error, self.max_attempts) from last_error

        log.success(f"Query interpreted on attempt {interpretation.intentos}.")
        return interpretation
