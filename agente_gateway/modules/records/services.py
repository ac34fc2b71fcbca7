# agente_gateway/modules/records/services.py

from typing import Any, Dict, Mapping, Optional, Tuple

from loguru import logger
from supabase import AsyncClient

from agente_gateway.core.exceptions import NotFoundError, ValidationError
from agente_gateway.core.logging_config import trace_id_var
from agente_gateway.core.repository import BaseRepository
from agente_gateway.models.gateway import ActionOutcome
from agente_gateway.models.query import QueryPlan
from agente_gateway.modules.gateway.catalog import CATALOG, ActionId, Category
from agente_gateway.modules.query.resolver import QueryResolver
from agente_gateway.modules.records.repository import get_repository
from agente_gateway.modules.records.tables import TABLE_SPECS, TableSpec

PASSWORD_FIELD = "pass"


def _without_password(row: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not row:
        return row
    return {k: v for k, v in row.items() if k != PASSWORD_FIELD}


def _parse_limit(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        limit = int(value)
    except (TypeError, ValueError):
        raise ValidationError("El parámetro 'limite' debe ser un número entero") from None
    return limit if limit > 0 else None


def _sanitize_search(text: str) -> str:
    # Comas y parentesis rompen la sintaxis de or=() de PostgREST
    return "".join(ch for ch in str(text) if ch not in ",()").strip()


class RecordService:
    """CRUD de una tabla del sistema de gestion.

    Todas las operaciones devuelven un ActionOutcome (status + data) y
    levantan errores de dominio que el dispatcher traduce a codigos HTTP.
    """

    def __init__(self, spec: TableSpec, repository: BaseRepository, resolver: QueryResolver):
        self.spec = spec
        self.repository = repository
        self.resolver = resolver

    @property
    def log(self):
        return logger.bind(service="RecordService", table=self.spec.table, trace_id=trace_id_var.get())

    def _order(self, params: Mapping[str, Any]) -> Optional[Tuple[str, bool]]:
        column = params.get("campo_orden") or (self.spec.default_order[0] if self.spec.default_order else None)
        if not column:
            return None
        direction = params.get("orden")
        if direction is None:
            desc = self.spec.default_order[1] if self.spec.default_order and column == self.spec.default_order[0] else False
        else:
            desc = str(direction).lower() == "desc"
        return column, desc

    def _or_filter(self, params: Mapping[str, Any]) -> Optional[str]:
        text = params.get("search")
        if not text or not self.spec.search_fields:
            return None
        term = _sanitize_search(text)
        if not term:
            return None
        return ",".join(f"{field}.ilike.%{term}%" for field in self.spec.search_fields)

    @staticmethod
    def _require_id(params: Mapping[str, Any]) -> Any:
        record_id = params.get("id")
        if record_id is None or record_id == "":
            raise ValidationError("Se requiere el parámetro 'id'")
        return record_id

    # --- Operaciones ---

    async def search(self, params: Mapping[str, Any], filters: Optional[QueryPlan] = None) -> ActionOutcome:
        plan = filters if filters is not None else await self.resolver.plan(self.spec.table, params)
        result = await self.resolver.execute(
            plan,
            order=self._order(params),
            limit=_parse_limit(params.get("limite")),
            or_filter=self._or_filter(params),
        )
        self.log.info(f"search -> {len(result.rows)} row(s)")
        return ActionOutcome(status=200, data=result.rows)

    async def list(self, params: Mapping[str, Any], filters: Optional[QueryPlan] = None) -> ActionOutcome:
        rows = await self.repository.list_by(order=self._order(params), limit=_parse_limit(params.get("limite")))
        return ActionOutcome(status=200, data=rows)

    async def get_by_id(self, params: Mapping[str, Any], filters: Optional[QueryPlan] = None) -> ActionOutcome:
        record_id = self._require_id(params)
        row = await self.repository.get_by_id(record_id)
        if row is None:
            raise NotFoundError(f"{self.spec.singular} no encontrado", {"id": record_id})
        return ActionOutcome(status=200, data=row)

    async def get_config(self, params: Mapping[str, Any], filters: Optional[QueryPlan] = None) -> ActionOutcome:
        if params.get("id") is not None:
            rows = await self.repository.list_by([("id", "eq", params["id"])])
        elif params.get("clave"):
            rows = await self.repository.list_by([("clave", "eq", params["clave"])])
        else:
            raise ValidationError("Se requiere el parámetro 'id' o 'clave'")
        return ActionOutcome(status=200, data=rows)

    async def create(self, params: Mapping[str, Any], filters: Optional[QueryPlan] = None) -> ActionOutcome:
        data = dict(params)
        if not data:
            raise ValidationError(f"Se requieren datos para crear {self.spec.singular.lower()}")
        rows = await self.repository.create(data)
        self.log.success(f"Created {len(rows)} row(s)")
        return ActionOutcome(status=201, data=rows[0] if len(rows) == 1 else rows)

    async def update(self, params: Mapping[str, Any], filters: Optional[QueryPlan] = None) -> ActionOutcome:
        record_id = self._require_id(params)
        data = {k: v for k, v in params.items() if k != "id"}
        if not data:
            raise ValidationError("No se proporcionaron campos para actualizar")
        rows = await self.repository.update(record_id, data)
        if not rows:
            raise NotFoundError(f"{self.spec.singular} no encontrado", {"id": record_id})
        return ActionOutcome(status=200, data=rows[0] if len(rows) == 1 else rows)

    async def delete(self, params: Mapping[str, Any], filters: Optional[QueryPlan] = None) -> ActionOutcome:
        record_id = self._require_id(params)
        rows = await self.repository.delete(record_id)
        if not rows:
            raise NotFoundError(f"{self.spec.singular} no encontrado", {"id": record_id})
        return ActionOutcome(status=200, data={"message": f"{self.spec.singular} eliminado", "id": record_id})

    async def validate_login(self, params: Mapping[str, Any], filters: Optional[QueryPlan] = None) -> ActionOutcome:
        field = self.spec.login_field
        if not field:
            raise ValidationError(f"{self.spec.table} no admite validación de credenciales")
        identifier, password = params.get(field), params.get(PASSWORD_FIELD)
        if not identifier or not password:
            raise ValidationError(f"Se requieren los parámetros '{field}' y '{PASSWORD_FIELD}'")
        row = await self.repository.get_by([(field, "eq", identifier), (PASSWORD_FIELD, "eq", password)])
        # Credenciales invalidas no son un error: valid=False
        return ActionOutcome(status=200, data={"valid": row is not None, "user": _without_password(row)})

    async def reset_password(self, params: Mapping[str, Any], filters: Optional[QueryPlan] = None) -> ActionOutcome:
        record_id = self._require_id(params)
        new_password = params.get("newPass")
        if not new_password:
            raise ValidationError("Se requiere el parámetro 'newPass'")
        rows = await self.repository.update(record_id, {PASSWORD_FIELD: new_password})
        if not rows:
            raise NotFoundError(f"{self.spec.singular} no encontrado", {"id": record_id})
        return ActionOutcome(
            status=200,
            data={"message": "Contraseña actualizada", "data": [_without_password(r) for r in rows]},
        )


def operation_for(action: ActionId) -> str:
    """Nombre del metodo de RecordService que atiende la accion."""
    name = action.value
    if action == ActionId.GET_CONFIG:
        return "get_config"
    for prefix, operation in (
        ("search", "search"),
        ("list", "list"),
        ("create", "create"),
        ("update", "update"),
        ("delete", "delete"),
        ("validateLogin", "validate_login"),
        ("resetPassword", "reset_password"),
    ):
        if name.startswith(prefix):
            return operation
    if name.startswith("get") and name.endswith("ById"):
        return "get_by_id"
    raise ValueError(f"No operation mapped for action '{name}'")


class RecordActionHandler:
    """Adapta una operacion de RecordService a execute(params, filters)."""

    def __init__(self, service: RecordService, operation: str):
        self.service = service
        self.operation = operation

    async def execute(self, params: Mapping[str, Any], filters: Optional[QueryPlan] = None) -> ActionOutcome:
        return await getattr(self.service, self.operation)(params, filters)


def build_record_handlers(client: AsyncClient, resolver: QueryResolver) -> Dict[ActionId, RecordActionHandler]:
    handlers: Dict[ActionId, RecordActionHandler] = {}
    for category, entry in CATALOG.items():
        service = RecordService(TABLE_SPECS[category], get_repository(category, client), resolver)
        for action in entry.actions:
            handlers[action] = RecordActionHandler(service, operation_for(action))
    return handlers

