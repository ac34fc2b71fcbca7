# tests/conftest.py
import copy
import os
import re
from types import SimpleNamespace
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from postgrest.exceptions import APIError

from agente_gateway.services.llm_client import BaseLLMClient, GenerationChain


@pytest.fixture(scope="session", autouse=True)
def mock_env_vars():
    mock_settings = {
        "PROJECT_NAME": "Agente Gateway Test",
        "LOG_LEVEL": "DEBUG",
        "SUPABASE_URL": "http://supabase.test",
        "SUPABASE_KEY": "test-key",
    }
    with patch.dict(os.environ, mock_settings):
        yield


# --- Fake de supabase-py (query builder en memoria) ---

class FakeResponse:
    def __init__(self, data):
        self.data = data


def _ilike_to_regex(pattern: str) -> re.Pattern:
    parts = [re.escape(p) for p in pattern.split("%")]
    return re.compile("^" + ".*".join(parts) + "$", re.IGNORECASE | re.DOTALL)


def _compare(op: str, actual: Any, expected: Any) -> bool:
    if op == "eq":
        return actual == expected
    if op == "neq":
        return actual != expected
    if actual is None:
        return False
    if op == "gt":
        return actual > expected
    if op == "gte":
        return actual >= expected
    if op == "lt":
        return actual < expected
    if op == "lte":
        return actual <= expected
    if op == "ilike":
        return isinstance(actual, str) and bool(_ilike_to_regex(expected).match(actual))
    raise AssertionError(f"unsupported op {op}")


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.operation = "select"
        self.columns = "*"
        self.filters: List[tuple] = []
        self.or_groups: List[str] = []
        self.order_by: Optional[tuple] = None
        self.limit_n: Optional[int] = None
        self.range_bounds: Optional[tuple] = None
        self.payload: Any = None
        self.single_row = False

    def select(self, columns: str = "*", **kwargs):
        self.columns = columns
        return self

    def _filter(self, op, column, value):
        self.filters.append((op, column, value))
        return self

    def eq(self, column, value): return self._filter("eq", column, value)
    def neq(self, column, value): return self._filter("neq", column, value)
    def gt(self, column, value): return self._filter("gt", column, value)
    def gte(self, column, value): return self._filter("gte", column, value)
    def lt(self, column, value): return self._filter("lt", column, value)
    def lte(self, column, value): return self._filter("lte", column, value)
    def ilike(self, column, pattern): return self._filter("ilike", column, pattern)

    def or_(self, filters: str, **kwargs):
        self.or_groups.append(filters)
        return self

    def order(self, column, desc=False, **kwargs):
        self.order_by = (column, desc)
        return self

    def limit(self, size, **kwargs):
        self.limit_n = size
        return self

    def range(self, start, end, **kwargs):
        self.range_bounds = (start, end)
        return self

    def insert(self, data, **kwargs):
        self.operation, self.payload = "insert", data
        return self

    def update(self, data, **kwargs):
        self.operation, self.payload = "update", data
        return self

    def delete(self, **kwargs):
        self.operation = "delete"
        return self

    def single(self):
        self.single_row = True
        return self

    def _matches(self, row: Dict[str, Any]) -> bool:
        if not all(_compare(op, row.get(col), val) for op, col, val in self.filters):
            return False
        for group in self.or_groups:
            alternatives = []
            for clause in group.split(","):
                col, op, val = clause.split(".", 2)
                alternatives.append(_compare(op, row.get(col), val))
            if not any(alternatives):
                return False
        return True

    def _project(self, row: Dict[str, Any]) -> Dict[str, Any]:
        if self.columns.strip() == "*":
            return copy.deepcopy(row)
        return {c.strip(): row.get(c.strip()) for c in self.columns.split(",")}

    async def execute(self):
        self.db.executed.append(self)
        if self.table in self.db.errors:
            raise self.db.errors[self.table]
        # Falla solo la consulta final (select "*" sin limite); introspeccion y escaneos usan limit
        pending = self.db.full_scan_errors.get(self.table)
        if pending and self.operation == "select" and self.columns.strip() == "*" and self.limit_n is None:
            raise pending.pop(0)
        if self.table not in self.db.tables:
            raise APIError({"message": f'relation "public.{self.table}" does not exist', "code": "42P01", "hint": None, "details": None})
        rows = self.db.tables[self.table]

        if self.operation == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            created = []
            for item in items:
                record = dict(item)
                record.setdefault("id", max([r.get("id", 0) for r in rows] or [0]) + 1)
                rows.append(record)
                created.append(copy.deepcopy(record))
            return FakeResponse(created)

        matched = [r for r in rows if self._matches(r)]
        if self.operation == "update":
            for r in matched:
                r.update(self.payload)
            return FakeResponse([copy.deepcopy(r) for r in matched])
        if self.operation == "delete":
            self.db.tables[self.table] = [r for r in rows if r not in matched]
            return FakeResponse([copy.deepcopy(r) for r in matched])

        if self.order_by:
            column, desc = self.order_by
            matched = sorted(matched, key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)
        if self.range_bounds:
            matched = matched[self.range_bounds[0]:self.range_bounds[1] + 1]
        if self.limit_n is not None:
            matched = matched[:self.limit_n]
        data = [self._project(r) for r in matched]
        if self.single_row:
            if len(data) != 1:
                raise APIError({"message": "JSON object requested, multiple (or no) rows returned", "code": "PGRST116", "hint": None, "details": None})
            return FakeResponse(data[0])
        return FakeResponse(data)


class FakeSupabase:
    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.tables = copy.deepcopy(tables or {})
        self.errors: Dict[str, Exception] = {}
        self.full_scan_errors: Dict[str, List[Exception]] = {}
        self.executed: List[FakeQuery] = []

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)


SAMPLE_TABLES = {
    "Empresa": [
        {"id": 1, "nombre": "Gloria", "ruc": "20100190797", "distrito": "Lima", "estado": "activo"},
        {"id": 2, "nombre": "Alicorp", "ruc": "20100055237", "distrito": "Callao", "estado": "activo"},
    ],
    "Planta": [
        {"id": 10, "nombre": "Planta Huachipa", "id_empresa": 1, "nombreempresa": "Gloria", "direccion": "Av. Las Torres"},
        {"id": 11, "nombre": "Planta Ventanilla", "id_empresa": 2, "nombreempresa": "Alicorp", "direccion": "Av. Néstor Gambetta"},
    ],
    "Encargado": [
        {"id": 20, "nombre": "Rosa", "apellido": "Quispe", "email": "rosa@gloria.pe", "pass": "secreta", "cargo": "Jefa de planta"},
    ],
    "Maquinas": [
        {"id": 100, "marca": "Tetra Pak", "modelo": "A3", "serie": "TP-001", "id_planta": 10, "id_empresa": 1, "nombreplanta": "Planta Huachipa"},
        {"id": 101, "marca": "Krones", "modelo": "Modulfill", "serie": "KR-778", "id_planta": 11, "id_empresa": 2, "nombreplanta": "Planta Ventanilla"},
    ],
    "Usuarios": [
        {"id": 1, "nombres": "Carlos Díaz", "usuario": "cdiaz", "pass": "1234", "email": "carlos@baechler.pe", "rol": "admin"},
    ],
    "Reporte_Servicio": [
        {"id": 1, "codigo_reporte": "RS-001", "fecha": "2024-03-01", "nombre_empresa": "Gloria", "id_empresa": 1},
        {"id": 2, "codigo_reporte": "RS-002", "fecha": "2024-05-20", "nombre_empresa": "Alicorp", "id_empresa": 2},
    ],
    "Reporte_Visita": [],
    "Configuracion": [
        {"id": 1, "clave": "moneda", "valor": "PEN"},
    ],
}


@pytest.fixture
def fake_db() -> FakeSupabase:
    return FakeSupabase(SAMPLE_TABLES)


# --- LLM fakes ---

class FakeLLM(BaseLLMClient):
    """Proveedor que devuelve (o lanza) respuestas en orden; repite la ultima."""

    def __init__(self, name: str, outputs: List[Any]):
        self.provider_name = name
        self.outputs = list(outputs)
        self.calls: List[Dict[str, Any]] = []

    async def generate(self, prompt, system=None, json_mode=False, temperature=0.1, max_tokens=500) -> str:
        self.calls.append({"prompt": prompt, "system": system, "json_mode": json_mode,
                           "temperature": temperature, "max_tokens": max_tokens})
        index = min(len(self.calls) - 1, len(self.outputs) - 1)
        output = self.outputs[index]
        if isinstance(output, Exception):
            raise output
        return output


@pytest.fixture
def no_sleep() -> AsyncMock:
    return AsyncMock(return_value=None)


def make_clients(supabase=None, http=None) -> SimpleNamespace:
    clients = SimpleNamespace(supabase=supabase, openai=None, gemini=None, http=http)
    clients.describe = lambda: {"supabase": supabase is not None, "openai": False, "gemini": False, "http": http is not None}
    return clients


@pytest.fixture
def build_test_services(fake_db, no_sleep):
    """Factory: GatewayServices sobre el fake con un LLM guionizado."""
    from agente_gateway.core.config import settings
    from agente_gateway.modules.gateway.services import GatewayServices

    def _build(classifier_outputs: List[Any], text_outputs: Optional[List[Any]] = None, supabase=fake_db):
        llm = FakeLLM("FakeLLM", classifier_outputs)
        text_llm = FakeLLM("FakeText", text_outputs or ["Respuesta de prueba"])
        services = GatewayServices(
            make_clients(supabase=supabase),
            settings,
            generation_chain=GenerationChain([llm]),
            text_chain=GenerationChain([text_llm]),
            sleep=no_sleep,
        )
        return services, llm, text_llm

    return _build


@pytest_asyncio.fixture
async def client_for():
    """Factory de httpx.AsyncClient sobre la app con servicios inyectados."""
    from agente_gateway.main import create_app

    opened: List[AsyncClient] = []

    def _make(services) -> AsyncClient:
        app = create_app(services=services)
        client = AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver")
        opened.append(client)
        return client

    yield _make
    for client in opened:
        await client.aclose()
