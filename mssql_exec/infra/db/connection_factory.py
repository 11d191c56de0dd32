"""
Scoped connection handling.

``open_pool`` opens one connection for a work item and guarantees it is
closed on every exit path.  A failure while closing is logged and
swallowed so it never hides the error that ended the block.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Iterator

from ...errors import ReleaseError
from ...models import ConnectionDescriptor
from .mssql import Db, connect

Connector = Callable[[ConnectionDescriptor], Db]


@contextmanager
def open_pool(descriptor: ConnectionDescriptor, connector: Connector = connect) -> Iterator[Db]:
    """Open a connection for the duration of a ``with`` block.

    Args:
        descriptor: Resolved connection settings.
        connector: Callable returning a ``Db``; defaults to ``connect``.

    Raises:
        DatabaseConnectionError: If the connection cannot be opened.
    """
    db = connector(descriptor)
    try:
        yield db
    finally:
        try:
            db.close()
        except ReleaseError as e:
            logging.warning('[pool] close failed', extra={'error': e.message})
