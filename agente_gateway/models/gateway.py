# agente_gateway/models/gateway.py

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from agente_gateway.models.query import QueryPlan
from agente_gateway.modules.gateway.catalog import CATALOG, ActionId, Category, parse_category


# --- Intent / pipeline ---

class Intent(BaseModel):
    """Clasificacion de una consulta en lenguaje natural."""

    categoria: Category
    acciones: List[ActionId] = Field(..., min_length=1)
    parametros_sugeridos: Dict[str, Any] = Field(default_factory=dict)
    explicacion: str = ""

    @field_validator("categoria", mode="before")
    @classmethod
    def _coerce_category(cls, value: Any) -> Any:
        parsed = parse_category(value) if isinstance(value, str) else None
        return parsed or value

    @field_validator("parametros_sugeridos", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @model_validator(mode="after")
    def _actions_belong_to_category(self) -> "Intent":
        allowed = set(CATALOG[self.categoria].actions)
        unknown = [a.value for a in self.acciones if a not in allowed]
        if unknown:
            raise ValueError(f"Acciones {unknown} no pertenecen a la categoría '{self.categoria.value}'")
        return self


class ActionOutcome(BaseModel):
    status: int = 200
    data: Any = None


class ActionResult(BaseModel):
    accion: str
    categoria: str
    status: int
    data: Any = None


class Interpretation(BaseModel):
    """Resultado de clasificar, resolver y (si es de solo lectura) ejecutar una consulta."""

    intent: Intent
    parametros: Dict[str, Any] = Field(default_factory=dict)
    filtros: Optional[QueryPlan] = None
    auto_ejecutable: bool = False
    resultados: List[ActionResult] = Field(default_factory=list)
    intentos: int = 1


class GenerationResult(BaseModel):
    text: str
    provider: str


# --- API payloads ---

class SupabaseContent(BaseModel):
    action: Optional[str] = None
    params: Dict[str, Any] = Field(default_factory=dict)
    query: Optional[str] = None

    @field_validator("params", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return {} if value is None else value


class SupabaseRequest(BaseModel):
    service: Optional[str] = None
    content: Optional[SupabaseContent] = None


class GeminiContent(BaseModel):
    action: Optional[str] = None
    prompt: Optional[str] = None
    query: Optional[str] = None
    params: Dict[str, Any] = Field(default_factory=dict)

    @property
    def text(self) -> Optional[str]:
        return self.prompt or self.query


class GeminiRequest(BaseModel):
    service: Optional[str] = None
    content: Optional[GeminiContent] = None


class OpenAIRequest(BaseModel):
    prompt: Optional[str] = None
    system: Optional[str] = None
    json_mode: bool = False


class GatewayEnvelope(BaseModel):
    status: Literal["success", "error"]
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    data: Any = None
