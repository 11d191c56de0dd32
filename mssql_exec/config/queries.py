"""
SQL templates for the database listing operations.

All listing statements select from ``sys.databases`` and are built only
from the fixed literals in this module; no caller-supplied text is ever
placed into them, so they are executed without parameters.

The ``queries`` mapping pairs each listing operation with the ``WHERE``
clause that scopes it.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional

from ..models import AdditionalFields, Operation

SYSTEM_DATABASES = ('master', 'tempdb', 'model', 'msdb')

_SYSTEM_LIST = ','.join(f"'{name}'" for name in SYSTEM_DATABASES)


def list_all() -> Optional[str]:
    return None


def list_user() -> Optional[str]:
    return f"name NOT IN ({_SYSTEM_LIST})"


def list_system() -> Optional[str]:
    return f"name IN ({_SYSTEM_LIST})"


queries: Dict[Operation, Callable[[], Optional[str]]] = {
    Operation.LIST_ALL: list_all,
    Operation.LIST_USER: list_user,
    Operation.LIST_SYSTEM: list_system,
}


def select_columns(fields: AdditionalFields) -> List[str]:
    """Column list for the listing, always starting with ``name``."""
    columns = ['name']
    if fields.include_database_id:
        columns.append('database_id')
    if fields.include_create_date:
        columns.append('create_date')
    if fields.include_state:
        columns.extend(['state_desc', 'user_access_desc', 'is_read_only'])
    return columns


def list_databases(operation: Operation, fields: Optional[AdditionalFields] = None) -> str:
    """Build the listing statement for ``operation``.

    Example::

        >>> list_databases(Operation.LIST_USER, AdditionalFields(include_database_id=True))
        "SELECT name, database_id FROM sys.databases WHERE name NOT IN ('master','tempdb','model','msdb') ORDER BY name"

    Raises:
        ValueError: If ``operation`` is not a listing operation.
    """
    try:
        scope = queries[Operation(operation)]
    except KeyError:
        raise ValueError(f"Not a listing operation: {operation}") from None
    sql = f"SELECT {', '.join(select_columns(fields or AdditionalFields()))} FROM sys.databases"
    where = scope()
    if where:
        sql += f" WHERE {where}"
    return sql + ' ORDER BY name'
