# tests/query/test_filters.py
from datetime import datetime, timezone

import pytest

from agente_gateway.models.query import ColumnType
from agente_gateway.modules.query.filters import normalize_filter, split_operator, to_iso_utc

NOW = datetime(2024, 6, 15, 12, 30, 45, 123000, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "raw, expected",
    [
        (">=5", ("gte", "5")),
        (">5", ("gt", "5")),
        ("<= 7", ("lte", "7")),
        ("<7", ("lt", "7")),
        ("=3", ("eq", "3")),
        ("!=3", ("neq", "3")),
        ("3", ("eq", "3")),
    ],
)
def test_split_operator(raw, expected):
    assert split_operator(raw) == expected


def test_numeric_with_operator():
    result = normalize_filter(">=5", ColumnType.NUMERO)
    assert result.operator == "gte"
    assert result.value == 5


def test_numeric_decimal_with_comma():
    result = normalize_filter("<2,5", ColumnType.NUMERO)
    assert result.operator == "lt"
    assert result.value == 2.5


def test_unparsable_numeric_passes_through_as_eq():
    result = normalize_filter(">=muchos", ColumnType.NUMERO)
    assert result.operator == "eq"
    assert result.value == ">=muchos"


def test_relative_days_against_fixed_now():
    result = normalize_filter("3 days", ColumnType.FECHA, now=NOW)
    assert result.operator == "eq"
    assert result.value == "2024-06-12T12:30:45.123Z"


def test_relative_with_operator_and_months_then_years():
    result = normalize_filter(">= 1 months 1 years", ColumnType.FECHA, now=NOW)
    assert result.operator == "gte"
    assert result.value == "2023-05-15T12:30:45.123Z"


def test_now_token_resolves_to_now():
    result = normalize_filter("<now()", ColumnType.FECHA, now=NOW)
    assert result.operator == "lt"
    assert result.value == to_iso_utc(NOW)


def test_absolute_day_first_date():
    result = normalize_filter(">05/03/2024", ColumnType.FECHA)
    assert result.operator == "gt"
    assert result.value == "2024-03-05T00:00:00.000Z"


def test_absolute_iso_date():
    result = normalize_filter("2024-03-05", ColumnType.FECHA)
    assert result.value == "2024-03-05T00:00:00.000Z"


def test_unparsable_date_never_raises():
    result = normalize_filter("cuando sea", ColumnType.FECHA)
    assert result.operator == "eq"
    assert result.value == "cuando sea"


@pytest.mark.parametrize("value", [True, 42, None, ""])
def test_non_string_or_empty_values_pass_through(value):
    result = normalize_filter(value, ColumnType.NUMERO)
    assert result.operator == "eq"
    assert result.value == value


def test_text_values_are_unchanged():
    result = normalize_filter(">=Gloria", ColumnType.TEXTO)
    assert result.operator == "eq"
    assert result.value == ">=Gloria"
