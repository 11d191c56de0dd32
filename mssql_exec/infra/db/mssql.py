"""
SQL Server connection utilities.

A thin wrapper around ``pyodbc`` exposing the small surface the rest of
the package relies on:

* ``connect(descriptor)`` opens a connection and returns a ``Db``;
* ``Db.request()`` returns a ``Request`` on which typed parameters are
  declared with ``input(name, sql_type, value)`` and an optional
  ``timeout`` (milliseconds) is set;
* ``Request.query(sql)`` runs the batch and returns a ``QueryResult``
  with every record set and the per-statement row counts;
* ``Db.close()`` releases the connection.

Statements with parameters are sent through ``sp_executesql`` so the
user text is passed verbatim and each value travels as a typed
parameter.  ``pyodbc`` is imported when the first connection is opened,
so the package can be imported on hosts without an ODBC library.

Example usage::

    from mssql_exec.infra.db import connect
    from mssql_exec.infra.db.types import resolve_sql_type

    db = connect(descriptor)
    try:
        request = db.request()
        request.input('id', resolve_sql_type('Int'), '42')
        result = request.query('SELECT * FROM dbo.t WHERE id = @id')
    finally:
        db.close()
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ...config import config
from ...errors import (
    DatabaseConnectionError,
    ExecutionError,
    ReleaseError,
    driver_message,
)
from ...models import ConnectionDescriptor
from .types import SqlType

Row = Dict[str, Any]


@dataclass
class QueryResult:
    """Rows and counts returned by one batch."""

    recordset: List[Row] = field(default_factory=list)
    recordsets: List[List[Row]] = field(default_factory=list)
    rows_affected: List[int] = field(default_factory=list)


def _import_driver() -> Any:
    import pyodbc  # type: ignore[import]

    return pyodbc


class Request:
    """A single statement execution on an open connection."""

    def __init__(self, conn: Any, error_class: Any) -> None:
        self._conn = conn
        self._error_class = error_class
        self._params: List[Tuple[str, SqlType, Any]] = []
        self.timeout: Optional[int] = None

    def input(self, name: str, sql_type: SqlType, value: Optional[str]) -> 'Request':
        """Declare a parameter; the value is coerced immediately.

        Raises:
            ParameterValueError: If ``value`` does not fit ``sql_type``.
        """
        self._params.append((name, sql_type, sql_type.to_python(value)))
        return self

    def query(self, sql: str) -> QueryResult:
        """Execute ``sql`` and collect every result set.

        Raises:
            ExecutionError: If the driver reports any failure, including
                a query timeout.
        """
        if self.timeout and self.timeout > 0:
            # ODBC query timeouts are whole seconds
            self._conn.timeout = int(math.ceil(self.timeout / 1000.0))
        statement, args = self._statement(sql)
        logging.debug('[DB] executing', extra={'sql': sql, 'params': [p[0] for p in self._params]})
        cursor = None
        try:
            cursor = self._conn.cursor()
            cursor.execute(statement, *args)
            return _collect(cursor)
        except self._error_class as e:
            raise ExecutionError(driver_message(e)) from e
        finally:
            if cursor is not None:
                _close_cursor(cursor, self._error_class)

    def _statement(self, sql: str) -> Tuple[str, List[Any]]:
        if not self._params:
            return sql, []
        declarations = ', '.join(f"@{name} {sql_type.declaration}" for name, sql_type, _ in self._params)
        placeholders = ', '.join('?' for _ in self._params)
        values = [value for _, _, value in self._params]
        return f"EXEC sp_executesql ?, ?, {placeholders}", [sql, declarations, *values]


def _collect(cursor: Any) -> QueryResult:
    recordsets: List[List[Row]] = []
    rows_affected: List[int] = []
    while True:
        if cursor.description:
            columns = [col[0] for col in cursor.description]
            rows = [dict(zip(columns, row)) for row in cursor.fetchall()]
            recordsets.append(rows)
            rows_affected.append(len(rows))
        elif cursor.rowcount is not None and cursor.rowcount >= 0:
            rows_affected.append(cursor.rowcount)
        if not cursor.nextset():
            break
    return QueryResult(
        recordset=recordsets[0] if recordsets else [],
        recordsets=recordsets,
        rows_affected=rows_affected,
    )


def _close_cursor(cursor: Any, error_class: Any) -> None:
    try:
        cursor.close()
    except error_class as e:
        logging.warning('[DB] cursor close failed', extra={'error': driver_message(e)})


class Db:
    """Lightweight wrapper around an open pyodbc connection."""

    def __init__(self, conn: Any, error_class: Any = Exception) -> None:
        self._conn = conn
        self._error_class = error_class
        self.closed = False

    def request(self) -> Request:
        return Request(self._conn, self._error_class)

    def close(self) -> None:
        """Close the connection.

        Raises:
            ReleaseError: If the driver fails to close the connection.
        """
        if self.closed:
            return
        self.closed = True
        try:
            self._conn.close()
        except self._error_class as e:
            raise ReleaseError(driver_message(e)) from e


def _odbc_value(value: Any) -> str:
    """Quote a connection string value when it contains separators."""
    s = '' if value is None else str(value)
    if any(ch in s for ch in ';{}') or s != s.strip():
        return '{' + s.replace('}', '}}') + '}'
    return s


def build_connection_string(descriptor: ConnectionDescriptor, driver: Optional[str] = None) -> str:
    """Build the ODBC connection string for ``descriptor``.

    A named instance is addressed as ``host\\INSTANCE`` without a port;
    the SQL Browser service resolves it.
    """
    if descriptor.instance_name:
        server = f"{descriptor.server}\\{descriptor.instance_name}"
    else:
        server = f"{descriptor.server},{descriptor.port}"
    parts = [
        ('DRIVER', '{' + (driver or config.MSSQL_ODBC_DRIVER) + '}'),
        ('SERVER', _odbc_value(server)),
        ('DATABASE', _odbc_value(descriptor.database)),
        ('UID', _odbc_value(descriptor.user)),
        ('PWD', _odbc_value(descriptor.password)),
        ('Encrypt', 'yes' if descriptor.encrypt else 'no'),
        ('TrustServerCertificate', 'yes' if descriptor.trust_server_certificate else 'no'),
    ]
    return ''.join(f"{key}={value};" for key, value in parts)


def connect(
    descriptor: ConnectionDescriptor,
    *,
    driver: Optional[str] = None,
    login_timeout: Optional[int] = None,
) -> Db:
    """Connect to SQL Server.

    Connections are opened in autocommit mode.  When
    ``config.MSSQL_ARITH_ABORT`` is set the session runs
    ``SET ARITHABORT ON`` right after login.

    Raises:
        DatabaseConnectionError: If login, network or TLS setup fails.
    """
    pyodbc = _import_driver()
    conn_str = build_connection_string(descriptor, driver)
    timeout = config.MSSQL_LOGIN_TIMEOUT if login_timeout is None else login_timeout
    logging.info(
        '[DB] connecting',
        extra={'server': descriptor.server, 'instance': descriptor.instance_name, 'database': descriptor.database},
    )
    try:
        conn = pyodbc.connect(conn_str, autocommit=True, timeout=timeout)
    except pyodbc.Error as e:
        raise DatabaseConnectionError(driver_message(e)) from e
    if config.MSSQL_ARITH_ABORT:
        try:
            cursor = conn.cursor()
            cursor.execute('SET ARITHABORT ON')
            cursor.close()
        except pyodbc.Error as e:
            try:
                conn.close()
            except pyodbc.Error as close_err:
                logging.warning('[DB] close after failed setup', extra={'error': driver_message(close_err)})
            raise DatabaseConnectionError(driver_message(e)) from e
    return Db(conn, pyodbc.Error)
