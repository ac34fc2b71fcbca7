# agente_gateway/modules/query/filters.py

import re
from datetime import datetime, timezone
from typing import Any, Optional, Tuple

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta
from loguru import logger

from agente_gateway.models.query import ColumnType, NormalizedFilter

# El orden importa: ">=" antes que ">", "<=" antes que "<"
OPERATOR_TOKENS: Tuple[Tuple[str, str], ...] = (
    (">=", "gte"),
    (">", "gt"),
    ("<=", "lte"),
    ("<", "lt"),
    ("=", "eq"),
    ("!=", "neq"),
)

LEADING_NUMBER = re.compile(r"^\s*([-+]?\d+(?:[.,]\d+)?)")
DAYS = re.compile(r"(\d+)\s*(?:days?|d[ií]as?)\b", re.IGNORECASE)
MONTHS = re.compile(r"(\d+)\s*(?:months?|mes(?:es)?)\b", re.IGNORECASE)
YEARS = re.compile(r"(\d+)\s*(?:years?|a[ñn]os?)\b", re.IGNORECASE)
NOW_TOKEN = re.compile(r"now\(\)", re.IGNORECASE)
INTERVAL_TOKEN = re.compile(r"\binterval\b", re.IGNORECASE)

ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
ISO_DATETIME = re.compile(r"^\d{4}-\d{2}-\d{2}T")
DAY_FIRST = re.compile(r"^(\d{2})[/-](\d{2})[/-](\d{4})$")


def split_operator(text: str) -> Tuple[str, str]:
    """Separa un operador inicial (">=5" -> ("gte", "5")). Sin operador -> eq."""
    stripped = text.strip()
    for token, operator in OPERATOR_TOKENS:
        if stripped.startswith(token):
            return operator, stripped[len(token):].strip()
    return "eq", stripped


def to_iso_utc(moment: datetime) -> str:
    """YYYY-MM-DDTHH:MM:SS.mmmZ"""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def has_relative_marker(text: str) -> bool:
    return bool(
        NOW_TOKEN.search(text)
        or INTERVAL_TOKEN.search(text)
        or DAYS.search(text)
        or MONTHS.search(text)
        or YEARS.search(text)
    )


def resolve_relative_date(text: str, now: datetime) -> datetime:
    """Resta dias, luego meses, luego anos al instante actual."""
    moment = now
    days = DAYS.search(text)
    if days:
        moment = moment - relativedelta(days=int(days.group(1)))
    months = MONTHS.search(text)
    if months:
        moment = moment - relativedelta(months=int(months.group(1)))
    years = YEARS.search(text)
    if years:
        moment = moment - relativedelta(years=int(years.group(1)))
    return moment


def parse_absolute_date(text: str) -> Optional[datetime]:
    try:
        if ISO_DATE.match(text) or ISO_DATETIME.match(text):
            return datetime.fromisoformat(text.replace("Z", "+00:00"))
        day_first = DAY_FIRST.match(text)
        if day_first:
            day, month, year = (int(g) for g in day_first.groups())
            return datetime(year, month, day, tzinfo=timezone.utc)
        return date_parser.parse(text)
    except (ValueError, OverflowError, TypeError):
        return None


def parse_number(text: str) -> Optional[int | float]:
    match = LEADING_NUMBER.match(text)
    if not match:
        return None
    literal = match.group(1).replace(",", ".")
    number = float(literal)
    return int(number) if "." not in literal else number


def normalize_filter(value: Any, column_type: Optional[ColumnType], now: Optional[datetime] = None) -> NormalizedFilter:
    """Convierte un valor crudo en (operador, valor tipado).

    Nunca lanza: valores que no se pueden interpretar pasan tal cual con
    ``eq``.
    """
    if not isinstance(value, str) or value == "":
        return NormalizedFilter(operator="eq", value=value)

    if column_type == ColumnType.NUMERO:
        operator, remainder = split_operator(value)
        number = parse_number(remainder)
        if number is None:
            logger.debug(f"Numeric filter '{value}' not parseable; passing through as eq.")
            return NormalizedFilter(operator="eq", value=value)
        return NormalizedFilter(operator=operator, value=number)

    if column_type == ColumnType.FECHA:
        operator, remainder = split_operator(value)
        if has_relative_marker(remainder):
            moment = resolve_relative_date(remainder, now or datetime.now(timezone.utc))
            return NormalizedFilter(operator=operator, value=to_iso_utc(moment))
        parsed = parse_absolute_date(remainder)
        if parsed is None:
            logger.debug(f"Date filter '{value}' not parseable; passing through as eq.")
            return NormalizedFilter(operator="eq", value=value)
        return NormalizedFilter(operator=operator, value=to_iso_utc(parsed))

    return NormalizedFilter(operator="eq", value=value)
