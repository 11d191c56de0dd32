"""
Turn a ``QueryResult`` into output items.
"""

from __future__ import annotations

from typing import List, Optional

from ..infra.db.mssql import QueryResult
from ..models import ExecutionOptions, Operation, OutputItem, RowGranularity


def map_rows(result: QueryResult, item_index: int) -> List[OutputItem]:
    """One item per row across every record set, in engine order."""
    return [
        OutputItem(json=dict(row), paired_item=item_index)
        for recordset in result.recordsets
        for row in recordset
    ]


def map_aggregated(result: QueryResult, item_index: int) -> List[OutputItem]:
    """A single item bundling all rows and per-statement counts."""
    return [
        OutputItem(
            json={
                'recordset': result.recordset,
                'rowsAffected': result.rows_affected,
                'recordsets': result.recordsets,
            },
            paired_item=item_index,
        )
    ]


def map_result(
    result: QueryResult,
    operation: Operation,
    options: Optional[ExecutionOptions],
    item_index: int,
) -> List[OutputItem]:
    # listings are always one item per database
    aggregate = options is not None and options.return_type is RowGranularity.ALL_ROWS
    if aggregate and Operation(operation) is Operation.EXECUTE_QUERY:
        return map_aggregated(result, item_index)
    return map_rows(result, item_index)
