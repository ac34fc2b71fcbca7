# agente_gateway/modules/query/introspector.py

import re
from typing import Any

from dateutil import parser as date_parser
from loguru import logger
from supabase import AsyncClient

from agente_gateway.core.exceptions import QueryError
from agente_gateway.core.repository import execute_query
from agente_gateway.models.query import ColumnInfo, ColumnType, TableSchema

DATE_PATTERNS = (
    re.compile(r"^\d{4}-\d{2}-\d{2}$"),  # YYYY-MM-DD
    re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-]\d{2}:?\d{2})?$"),  # ISO datetime
    re.compile(r"^\d{2}/\d{2}/\d{4}$"),  # DD/MM/YYYY
    re.compile(r"^\d{2}-\d{2}-\d{4}$"),  # DD-MM-YYYY
)
NUMERIC_ONLY = re.compile(r"^[\s\d.,+-]*$")


def looks_like_date(value: str) -> bool:
    text = value.strip()
    if not text:
        return False
    if any(p.match(text) for p in DATE_PATTERNS):
        return True
    # dateutil acepta "12" o "2024" como fecha
    if NUMERIC_ONLY.match(text):
        return False
    try:
        date_parser.parse(text)
        return True
    except (ValueError, OverflowError, TypeError):
        return False


def infer_type(value: Any) -> ColumnType:
    if value is None or isinstance(value, bool):
        return ColumnType.TEXTO
    if isinstance(value, (int, float)):
        return ColumnType.NUMERO
    if isinstance(value, str) and looks_like_date(value):
        return ColumnType.FECHA
    return ColumnType.TEXTO


def schema_from_row(table: str, row: dict) -> TableSchema:
    return TableSchema(
        table_name=table,
        columns=[ColumnInfo(name=name, inferred_type=infer_type(value)) for name, value in row.items()],
    )


class ColumnTypeIntrospector:
    """Infers column types of a table by sampling a single row.

    Never cached: every call hits the store again. An empty table or a
    failed query yields an empty schema instead of raising.
    """

    def __init__(self, client: AsyncClient):
        self.client = client

    async def introspect(self, table: str) -> TableSchema:
        log = logger.bind(service="ColumnTypeIntrospector", table=table)
        try:
            rows = await execute_query(self.client.table(table).select("*").limit(1), table, "introspect")
        except QueryError as e:
            log.warning(f"Could not sample table: {e}. Falling back to empty schema.")
            return TableSchema(table_name=table)

        if not rows:
            log.debug("Table is empty; schema unknown.")
            return TableSchema(table_name=table)

        schema = schema_from_row(table, rows[0])
        log.debug(f"Inferred schema: { {c.name: c.inferred_type.value for c in schema.columns} }")
        return schema
