"""
Supported query parameter types.

Parameters arrive as strings.  Each declared type maps to a ``SqlType``
holding the T-SQL declaration used with ``sp_executesql`` and a coercer
that turns the raw string into the Python value pyodbc binds.  The table
is closed: any other name is rejected before a statement is sent.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Optional

from ...errors import ParameterValueError, UnsupportedParameterType


def _coerce_string(value: str) -> str:
    return value


def _coerce_integer(value: str) -> int:
    try:
        return int(value.strip())
    except ValueError:
        raise ParameterValueError(f"Invalid integer: {value!r}") from None


def _coerce_bit(value: str) -> bool:
    s = value.strip().lower()
    if s in ('true', '1', 'yes'):
        return True
    if s in ('false', '0', 'no'):
        return False
    raise ParameterValueError(f"Expected boolean (true/false, 1/0, yes/no), got: {value!r}")


def _coerce_float(value: str) -> float:
    try:
        return float(value.strip())
    except ValueError:
        raise ParameterValueError(f"Invalid number: {value!r}") from None


def _coerce_decimal(value: str) -> Decimal:
    try:
        return Decimal(value.strip())
    except InvalidOperation:
        raise ParameterValueError(f"Invalid decimal: {value!r}") from None


def _coerce_datetime(value: str) -> datetime:
    s = value.strip()
    if s.endswith('Z'):
        s = s[:-1] + '+00:00'
    try:
        return datetime.fromisoformat(s)
    except ValueError:
        raise ParameterValueError(f"Invalid datetime (expected ISO 8601): {value!r}") from None


def _coerce_date(value: str) -> date:
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        raise ParameterValueError(f"Invalid date (expected YYYY-MM-DD): {value!r}") from None


@dataclass(frozen=True)
class SqlType:
    name: str
    declaration: str
    coerce: Callable[[str], Any]
    is_string: bool = False

    def to_python(self, value: Optional[str]) -> Any:
        """Coerce a raw value; empty input binds NULL for non-string types."""
        if value is None:
            return None
        if not self.is_string and value.strip() == '':
            return None
        return self.coerce(value)


SQL_TYPES: Dict[str, SqlType] = {
    'Int': SqlType('Int', 'int', _coerce_integer),
    'BigInt': SqlType('BigInt', 'bigint', _coerce_integer),
    'VarChar': SqlType('VarChar', 'varchar(max)', _coerce_string, is_string=True),
    'NVarChar': SqlType('NVarChar', 'nvarchar(max)', _coerce_string, is_string=True),
    'Text': SqlType('Text', 'text', _coerce_string, is_string=True),
    'Bit': SqlType('Bit', 'bit', _coerce_bit),
    'Float': SqlType('Float', 'float', _coerce_float),
    # same defaults as an unsized Decimal in the node mssql driver
    'Decimal': SqlType('Decimal', 'decimal(18, 0)', _coerce_decimal),
    'DateTime': SqlType('DateTime', 'datetime', _coerce_datetime),
    'Date': SqlType('Date', 'date', _coerce_date),
}


def resolve_sql_type(type_name: str, item_index: Optional[int] = None) -> SqlType:
    """Look up a declared parameter type.

    Raises:
        UnsupportedParameterType: If ``type_name`` is not in ``SQL_TYPES``.
    """
    try:
        return SQL_TYPES[type_name]
    except KeyError:
        raise UnsupportedParameterType(type_name, item_index) from None
