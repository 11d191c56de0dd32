"""
Statement execution for the two kinds of operation.

``execute_query`` runs the user statement of a work item with its
declared parameters; ``list_databases`` runs a statement built from the
fixed templates in ``config.queries``.  Both apply the optional request
timeout before executing.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from ..config.queries import list_databases as build_listing
from ..infra.db.mssql import Db, QueryResult, Request
from ..infra.db.types import SqlType, resolve_sql_type
from ..models import AdditionalFields, ExecutionOptions, Operation, QueryParameter, WorkItem

Bindings = List[Tuple[QueryParameter, SqlType]]


def _new_request(db: Db, options: Optional[ExecutionOptions]) -> Request:
    request = db.request()
    if options and options.timeout_ms and options.timeout_ms > 0:
        request.timeout = options.timeout_ms
    return request


def resolve_parameters(item: WorkItem) -> Bindings:
    """Pair each declared parameter with its SQL type.

    Called before a connection is opened, so an unsupported type fails
    without touching the server.

    Raises:
        UnsupportedParameterType: For a type outside the supported set.
    """
    return [(param, resolve_sql_type(param.type, item.index)) for param in item.parameters]


def execute_query(db: Db, item: WorkItem, bindings: Bindings) -> QueryResult:
    """Run ``item.query`` verbatim with the resolved ``bindings``.

    Raises:
        ParameterValueError: For a value that does not fit its type.
        ExecutionError: If the statement fails.
    """
    request = _new_request(db, item.options)
    for param, sql_type in bindings:
        request.input(param.name, sql_type, param.value)
    logging.info('[exec] executeQuery', extra={'item': item.index, 'params': len(bindings)})
    return request.query(item.query)


def list_databases(
    db: Db,
    operation: Operation,
    fields: Optional[AdditionalFields] = None,
    options: Optional[ExecutionOptions] = None,
) -> QueryResult:
    """Run the ``sys.databases`` listing for ``operation``.

    Raises:
        ExecutionError: If the statement fails.
    """
    sql = build_listing(operation, fields)
    logging.info('[exec] listing databases', extra={'operation': Operation(operation).value, 'sql': sql})
    return _new_request(db, options).query(sql)
