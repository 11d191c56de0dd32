"""
Database access for SQL Server.

``mssql`` wraps ``pyodbc`` behind ``connect``/``Db``/``Request``;
``types`` holds the supported parameter types; ``connection_factory``
provides ``open_pool``, which guarantees the connection is closed.
"""

from .mssql import connect, build_connection_string, Db, QueryResult, Request  # noqa: F401
from .connection_factory import open_pool  # noqa: F401
from .types import SQL_TYPES, SqlType, resolve_sql_type  # noqa: F401
