# agente_gateway/core/repository.py

from abc import ABC
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx
from loguru import logger
from postgrest.exceptions import APIError
from supabase import AsyncClient

from agente_gateway.core.exceptions import QueryError

# Codigo PostgREST para ".single()" sin filas
PGRST_NO_ROWS = "PGRST116"

# Operadores soportados por el query builder
COMPARISON_OPERATORS = ("eq", "neq", "gt", "gte", "lt", "lte")

FilterClause = Tuple[str, str, Any]  # (columna, operador, valor)


def apply_filters(builder, clauses: Sequence[FilterClause]):
    """Aplica (columna, operador, valor) sobre un query builder de postgrest."""
    for column, operator, value in clauses:
        if operator not in COMPARISON_OPERATORS:
            raise ValueError(f"Unsupported operator '{operator}' for column '{column}'")
        builder = getattr(builder, operator)(column, value)
    return builder


async def execute_query(builder, table: str, operation: str) -> List[Dict[str, Any]]:
    """Ejecuta un builder y normaliza los errores del store a QueryError."""
    try:
        response = await builder.execute()
    except APIError as e:
        _handle_db_exception(e, operation, table)
    except httpx.HTTPError as e:
        # Fallos de transporte (conexion, timeout) tambien son errores del store
        logger.error(f"Transport error during op='{operation}' table='{table}': {type(e).__name__}: {e}")
        raise QueryError(f"Error de conexión con la base de datos: {e}", table=table, code=None) from e
    return list(response.data or [])


def _handle_db_exception(e: APIError, operation: str, table: str):
    """Loga y levanta una QueryError con el codigo de PostgREST."""
    code = getattr(e, "code", None)
    message = getattr(e, "message", None) or str(e)
    log_msg = f"DB Error during op='{operation}' table='{table}' code='{code}': {message}"
    if code == PGRST_NO_ROWS:
        logger.info(log_msg)
    else:
        logger.error(log_msg)
    raise QueryError(message, table=table, code=code) from e


class BaseRepository(ABC):
    """Repositorio base sobre una tabla de Supabase (PostgREST)."""

    table_name: str
    default_order: Optional[Tuple[str, bool]] = None  # (columna, desc)

    def __init__(self, client: AsyncClient):
        if not getattr(self, "table_name", None):
            raise AttributeError("Repository subclass must define a 'table_name'")
        if client is None:
            raise TypeError("BaseRepository requires a Supabase AsyncClient instance.")
        self.client = client
        logger.debug(f"BaseRepository initialized for table: '{self.table_name}'")

    def select(self, columns: str = "*"):
        return self.client.table(self.table_name).select(columns)

    async def get_by_id(self, id: Any) -> Optional[Dict[str, Any]]:
        try:
            rows = await execute_query(self.select().eq("id", id).limit(1), self.table_name, "get_by_id")
        except QueryError as e:
            if e.code == PGRST_NO_ROWS:
                return None
            raise
        return rows[0] if rows else None

    async def get_by(self, clauses: Sequence[FilterClause]) -> Optional[Dict[str, Any]]:
        """Primer registro que cumple los filtros."""
        rows = await self.list_by(clauses, limit=1)
        return rows[0] if rows else None

    async def list_by(
        self,
        clauses: Sequence[FilterClause] = (),
        order: Optional[Tuple[str, bool]] = None,
        limit: Optional[int] = None,
        or_filter: Optional[str] = None,
        ilike: Optional[Dict[str, str]] = None,
    ) -> List[Dict[str, Any]]:
        builder = apply_filters(self.select(), clauses)
        for column, pattern in (ilike or {}).items():
            builder = builder.ilike(column, pattern)
        if or_filter:
            builder = builder.or_(or_filter)
        order = order or self.default_order
        if order:
            builder = builder.order(order[0], desc=order[1])
        if limit is not None and limit > 0:
            builder = builder.limit(limit)
        return await execute_query(builder, self.table_name, "list_by")

    async def create(self, data: Dict[str, Any]) -> List[Dict[str, Any]]:
        builder = self.client.table(self.table_name).insert(data)
        return await execute_query(builder, self.table_name, "create")

    async def update(self, id: Any, data: Dict[str, Any]) -> List[Dict[str, Any]]:
        builder = self.client.table(self.table_name).update(data).eq("id", id)
        return await execute_query(builder, self.table_name, "update")

    async def delete(self, id: Any) -> List[Dict[str, Any]]:
        builder = self.client.table(self.table_name).delete().eq("id", id)
        return await execute_query(builder, self.table_name, "delete")
