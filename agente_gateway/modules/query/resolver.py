# agente_gateway/modules/query/resolver.py

from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from loguru import logger
from supabase import AsyncClient

from agente_gateway.core.config import settings
from agente_gateway.core.exceptions import ResolutionError
from agente_gateway.core.logging_config import trace_id_var
from agente_gateway.core.repository import apply_filters, execute_query
from agente_gateway.models.query import (
    AppliedFilter, ColumnType, QueryPlan, QueryResult, TableSchema,
)
from agente_gateway.modules.query.filters import normalize_filter
from agente_gateway.modules.query.fuzzy import find_best_match
from agente_gateway.modules.query.introspector import ColumnTypeIntrospector

# Claves que controlan la busqueda pero no son filtros de columna
CONTROL_KEYS = frozenset({"orden", "campo_orden", "limite", "search"})

# Tope de filas leidas para armar candidatos de fuzzy matching
CANDIDATE_SCAN_LIMIT = 1000


def split_filters(raw: Mapping[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Separa (filtros, controles)."""
    filters = {k: v for k, v in raw.items() if k not in CONTROL_KEYS}
    controls = {k: v for k, v in raw.items() if k in CONTROL_KEYS}
    return filters, controls


class QueryResolver:
    """Turns raw filters into a concrete query and runs it.

    Keys naming a column of the target table become direct comparisons
    (text values first corrected against the column's real values). Any
    other key is looked up by similarity in the relatable tables and
    replaced by an ``id_<table>`` foreign-key filter.
    """

    def __init__(
        self,
        client: AsyncClient,
        introspector: Optional[ColumnTypeIntrospector] = None,
        related_tables: Optional[Sequence[str]] = None,
        relation_threshold: Optional[float] = None,
        direct_threshold: Optional[float] = None,
        now_provider: Optional[Callable[[], datetime]] = None,
    ):
        self.client = client
        self.introspector = introspector or ColumnTypeIntrospector(client)
        self.related_tables = list(related_tables if related_tables is not None else settings.RELATED_TABLES)
        self.relation_threshold = relation_threshold if relation_threshold is not None else settings.RELATION_MATCH_THRESHOLD
        self.direct_threshold = direct_threshold if direct_threshold is not None else settings.DIRECT_MATCH_THRESHOLD
        self.now_provider = now_provider

    # --- Plan ---

    async def plan(self, table: str, raw_filters: Mapping[str, Any]) -> QueryPlan:
        log = logger.bind(service="QueryResolver", table=table, trace_id=trace_id_var.get())
        filters, _ = split_filters(raw_filters or {})
        schema = await self.introspector.introspect(table)
        now = self.now_provider() if self.now_provider else None

        applied: List[AppliedFilter] = []
        for key, value in filters.items():
            if value is None:
                log.debug(f"Skipping null filter '{key}'.")
                continue
            # "Empresa.nombre" sobre Empresa es la columna propia "nombre"
            column = self._own_column(table, key)

            if self._is_direct(schema, column):
                column_type = schema.column_type(column) or ColumnType.TEXTO
                applied.append(await self._direct_filter(table, column, value, column_type, now))
                continue

            related = await self._related_filter(table, key, value)
            if related is None:
                log.warning(f"No match for filter '{key}' = '{value}'.")
                raise ResolutionError(
                    f"No se encontró coincidencia para el filtro '{key}' con el valor '{value}'",
                    filter_key=key,
                    value=value,
                )
            applied.append(related)

        log.info(f"Query plan ready with {len(applied)} filter(s).")
        return QueryPlan(table=table, filters=applied)

    @staticmethod
    def _own_column(table: str, key: str) -> str:
        prefix, dot, column = key.partition(".")
        if dot and column and prefix.lower() == table.lower():
            return column
        return key

    @staticmethod
    def _is_direct(schema: TableSchema, key: str) -> bool:
        if schema.has_column(key):
            return True
        # Sin esquema no se puede comprobar; toda clave simple se trata como columna de texto
        return schema.is_empty and "." not in key

    async def _direct_filter(
        self, table: str, column: str, value: Any, column_type: ColumnType, now: Optional[datetime]
    ) -> AppliedFilter:
        matched = None
        if column_type == ColumnType.TEXTO and isinstance(value, str) and value.strip():
            values = await self._column_values(table, [column])
            candidates = [v for v, _ in values]
            matched = find_best_match(value, candidates, self.direct_threshold)
            if matched:
                value = matched.matched_value
                matched.source_column = column

        normalized = normalize_filter(value, column_type, now=now)
        return AppliedFilter(
            column=column,
            operator=normalized.operator,
            value=normalized.value,
            source_key=column,
            matched=matched,
        )

    async def _related_filter(self, table: str, key: str, value: Any) -> Optional[AppliedFilter]:
        log = logger.bind(service="QueryResolver", table=table, filter_key=key)
        candidates_tables, wanted_column = self._relation_targets(table, key)

        for related_table in candidates_tables:
            schema = await self.introspector.introspect(related_table)
            columns = schema.text_columns()
            if wanted_column:
                columns = [c for c in columns if c == wanted_column] or ([wanted_column] if schema.is_empty else [])
            if not columns:
                continue

            values = await self._column_values(related_table, columns)
            if not values:
                continue
            match = find_best_match(
                str(value),
                [v for v, _ in values],
                self.relation_threshold,
                strip_accents=True,
                sources=[c for _, c in values],
            )
            if match is None:
                continue

            rows = await execute_query(
                self.client.table(related_table).select("id").eq(match.source_column, match.matched_value).limit(1),
                related_table,
                "relation_lookup",
            )
            if not rows or rows[0].get("id") is None:
                continue

            fk_column = f"id_{related_table.lower()}"
            log.info(f"Resolved '{value}' -> {related_table}.{match.source_column}='{match.matched_value}' (score {match.similarity_score:.2f}) as {fk_column}={rows[0]['id']}")
            return AppliedFilter(column=fk_column, operator="eq", value=rows[0]["id"], source_key=key, matched=match)

        return None

    def _relation_targets(self, table: str, key: str) -> Tuple[List[str], Optional[str]]:
        """Tablas a recorrer y columna concreta (si la clave es 'Tabla.columna')."""
        others = [t for t in self.related_tables if t.lower() != table.lower()]
        if "." in key:
            prefix, column = key.split(".", 1)
            for related_table in others:
                if related_table.lower() == prefix.lower():
                    return [related_table], column
        return others, None

    async def _column_values(self, table: str, columns: Sequence[str]) -> List[Tuple[str, str]]:
        """Valores de texto distintos (valor, columna), en orden de lectura."""
        rows = await execute_query(
            self.client.table(table).select(",".join(columns)).limit(CANDIDATE_SCAN_LIMIT),
            table,
            "candidate_scan",
        )
        seen = set()
        values: List[Tuple[str, str]] = []
        for row in rows:
            for column in columns:
                candidate = row.get(column)
                if not isinstance(candidate, str) or not candidate.strip():
                    continue
                if (candidate, column) in seen:
                    continue
                seen.add((candidate, column))
                values.append((candidate, column))
        return values

    # --- Execute ---

    async def execute(
        self,
        plan: QueryPlan,
        order: Optional[Tuple[str, bool]] = None,
        limit: Optional[int] = None,
        or_filter: Optional[str] = None,
    ) -> QueryResult:
        builder = apply_filters(self.client.table(plan.table).select("*"), plan.clauses())
        if or_filter:
            builder = builder.or_(or_filter)
        if order:
            builder = builder.order(order[0], desc=order[1])
        if limit is not None and limit > 0:
            builder = builder.limit(limit)
        rows = await execute_query(builder, plan.table, "resolve")
        logger.bind(service="QueryResolver", table=plan.table).info(f"Query returned {len(rows)} row(s).")
        return QueryResult(table=plan.table, rows=rows, applied_filters=plan.filters)

    async def resolve(self, table: str, raw_filters: Mapping[str, Any], **options) -> QueryResult:
        plan = await self.plan(table, raw_filters)
        return await self.execute(plan, **options)
