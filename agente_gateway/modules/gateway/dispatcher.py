# agente_gateway/modules/gateway/dispatcher.py

from typing import Any, Dict, List, Mapping, Optional, Protocol

from loguru import logger

from agente_gateway.core.exceptions import GatewayError, ValidationError
from agente_gateway.core.logging_config import trace_id_var
from agente_gateway.models.gateway import ActionOutcome, ActionResult, Interpretation
from agente_gateway.models.query import QueryPlan
from agente_gateway.modules.gateway.catalog import (
    SEARCH_ACTIONS, ActionId, Category, parse_action, parse_category,
)


class ActionHandler(Protocol):
    async def execute(self, params: Mapping[str, Any], filters: Optional[QueryPlan] = None) -> ActionOutcome:
        ...


class ServiceDispatcher:
    """Runs catalog actions through an ActionId -> handler registry.

    Every action runs in isolation: a failing action becomes an error entry
    with a synthesized status code and the remaining actions still run.
    """

    def __init__(self, handlers: Mapping[ActionId, ActionHandler]):
        missing = [a.value for a in ActionId if a not in handlers]
        if missing:
            raise ValueError(f"Dispatcher registry incomplete; missing handlers for: {missing}")
        self.handlers: Dict[ActionId, ActionHandler] = dict(handlers)

    def resolve_action(self, service: Optional[str], action: Optional[str]) -> tuple[Category, ActionId]:
        """Valida servicio/accion de una llamada directa."""
        category = parse_category(service)
        if category is None:
            raise ValidationError(f"Servicio '{service}' no disponible")
        action_id = parse_action(category, action) if action else None
        if action_id is None:
            raise ValidationError(f"Acción '{action}' no disponible en servicio '{service}'")
        return category, action_id

    async def run_action(
        self,
        category: Category,
        action: ActionId,
        params: Mapping[str, Any],
        filters: Optional[QueryPlan] = None,
    ) -> ActionResult:
        log = logger.bind(service="ServiceDispatcher", action=action.value, trace_id=trace_id_var.get())
        handler = self.handlers[action]
        # Solo las busquedas consumen filtros ya resueltos
        plan = filters if action in SEARCH_ACTIONS else None
        try:
            outcome = await handler.execute(params, plan)
        except GatewayError as e:
            log.warning(f"Action failed with {type(e).__name__} ({e.status_code}): {e.message}")
            return ActionResult(accion=action.value, categoria=category.value, status=e.status_code, data=e.to_payload())
        except Exception as e:
            log.exception(f"Unexpected error executing action: {e}")
            return ActionResult(accion=action.value, categoria=category.value, status=500, data={"error": str(e)})

        log.info(f"Action completed with status {outcome.status}.")
        return ActionResult(accion=action.value, categoria=category.value, status=outcome.status, data=outcome.data)

    async def dispatch(self, interpretation: Interpretation) -> List[ActionResult]:
        intent = interpretation.intent
        results: List[ActionResult] = []
        for action in intent.acciones:
            results.append(await self.run_action(intent.categoria, action, interpretation.parametros, interpretation.filtros))
        return results
