# agente_gateway/models/query.py

from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class ColumnType(str, Enum):
    TEXTO = "texto"
    NUMERO = "numero"
    FECHA = "fecha"


Operator = Literal["eq", "neq", "gt", "gte", "lt", "lte"]


class ColumnInfo(BaseModel):
    name: str
    inferred_type: ColumnType = ColumnType.TEXTO


class TableSchema(BaseModel):
    """Tipos inferidos de una tabla a partir de una fila de muestra."""

    table_name: str
    columns: List[ColumnInfo] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.columns

    def column_type(self, name: str) -> Optional[ColumnType]:
        for column in self.columns:
            if column.name == name:
                return column.inferred_type
        return None

    def has_column(self, name: str) -> bool:
        return self.column_type(name) is not None

    def text_columns(self) -> List[str]:
        return [c.name for c in self.columns if c.inferred_type == ColumnType.TEXTO]


class NormalizedFilter(BaseModel):
    operator: Operator = "eq"
    value: Any = None


class FuzzyMatchResult(BaseModel):
    matched_value: str
    similarity_score: float = Field(..., ge=0.0, le=1.0)
    source_column: Optional[str] = None


class AppliedFilter(BaseModel):
    """Filtro final aplicado a la consulta."""

    column: str
    operator: Operator = "eq"
    value: Any = None
    source_key: Optional[str] = Field(None, description="Clave original del filtro crudo.")
    matched: Optional[FuzzyMatchResult] = None


class QueryPlan(BaseModel):
    table: str
    filters: List[AppliedFilter] = Field(default_factory=list)

    def clauses(self) -> List[tuple]:
        return [(f.column, f.operator, f.value) for f in self.filters]


class QueryResult(BaseModel):
    table: str
    rows: List[Dict[str, Any]] = Field(default_factory=list)
    applied_filters: List[AppliedFilter] = Field(default_factory=list)
