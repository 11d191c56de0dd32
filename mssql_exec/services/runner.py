"""
Process a batch of work items, one connection per item.

Items are handled strictly in input order.  For each one the runner
resolves the connection settings and parameter types, opens a
connection, executes the operation, maps the result and closes the
connection again.  The stage
reached is tracked so a failure can be reported with where it happened.

When an item fails the connection (if it was opened) is closed first.
Then, with ``continue_on_fail`` the failure becomes a single
``{"error": message}`` item and the batch goes on; without it an
``ItemExecutionError`` is raised that still carries the output of the
items completed before the failing one.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from enum import Enum
from typing import Any, List, Mapping, Sequence, Union

from ..config.resolver import resolve_descriptor
from ..errors import ItemExecutionError, driver_message
from ..infra.db.connection_factory import Connector, open_pool
from ..infra.db.mssql import connect
from ..models import Operation, OutputItem, StoredCredentials, WorkItem
from .query_exec import execute_query, list_databases, resolve_parameters
from .result_mapper import map_result

ItemInput = Union[WorkItem, Mapping[str, Any]]


class Stage(str, Enum):
    START = 'start'
    RESOLVE_CONFIG = 'resolve_config'
    OPEN_CONNECTION = 'open_connection'
    EXECUTE = 'execute'
    MAP_RESULTS = 'map_results'
    RELEASE = 'release'
    DONE = 'done'


class ItemRun:
    """Runs one work item and remembers the last stage entered."""

    def __init__(self, operation: Operation, index: int, credentials: StoredCredentials,
                 connector: Connector) -> None:
        self.operation = operation
        self.index = index
        self.credentials = credentials
        self.connector = connector
        self.stage = Stage.START

    def process(self, raw: ItemInput) -> List[OutputItem]:
        self.stage = Stage.RESOLVE_CONFIG
        item = self._work_item(raw)
        descriptor = resolve_descriptor(self.credentials, item.connection_override)
        bindings = resolve_parameters(item) if self.operation is Operation.EXECUTE_QUERY else []

        self.stage = Stage.OPEN_CONNECTION
        with open_pool(descriptor, self.connector) as db:
            self.stage = Stage.EXECUTE
            if self.operation is Operation.EXECUTE_QUERY:
                result = execute_query(db, item, bindings)
            else:
                result = list_databases(db, self.operation, item.additional_fields, item.options)

            self.stage = Stage.MAP_RESULTS
            outputs = map_result(result, self.operation, item.options, self.index)
            self.stage = Stage.RELEASE
        self.stage = Stage.DONE
        return outputs

    def _work_item(self, raw: ItemInput) -> WorkItem:
        if isinstance(raw, WorkItem):
            return raw if raw.index == self.index else replace(raw, index=self.index)
        return WorkItem.from_dict(self.index, raw)


def run(
    operation: Union[Operation, str],
    items: Sequence[ItemInput],
    credentials: StoredCredentials,
    *,
    continue_on_fail: bool = False,
    connector: Connector = connect,
) -> List[OutputItem]:
    """Run ``operation`` for every work item and collect the output.

    Args:
        operation: One of ``executeQuery``, ``listAll``, ``listUser``, ``listSystem``.
        items: Work items, either ``WorkItem`` instances or plain mappings.
        credentials: Stored credentials shared by all items.
        continue_on_fail: Turn item failures into error items instead of aborting.
        connector: Opens a ``Db`` for a descriptor; defaults to ``connect``.

    Returns:
        Output items in input order, each paired with its item index.

    Raises:
        ItemExecutionError: On the first failure when ``continue_on_fail`` is off.
    """
    operation = Operation(operation)
    results: List[OutputItem] = []
    logging.info('[runner] start', extra={'operation': operation.value, 'items': len(items)})
    for i, raw in enumerate(items):
        item_run = ItemRun(operation, i, credentials, connector)
        try:
            outputs = item_run.process(raw)
        except Exception as e:
            message = driver_message(e)
            logging.error(
                '[runner] item failed',
                extra={'item': i, 'stage': item_run.stage.value, 'error': message},
            )
            if continue_on_fail:
                results.append(OutputItem(json={'error': message}, paired_item=i))
                continue
            raise ItemExecutionError(
                f"Error: {message}", item_index=i, stage=item_run.stage.value, results=results,
            ) from e
        logging.info('[runner] item done', extra={'item': i, 'outputs': len(outputs)})
        results.extend(outputs)
    return results
