"""
Error types raised while processing work items.

Every error carries the index of the work item it belongs to (when
known) so callers can pair failures with their input.  Driver errors are
wrapped into these types at the boundary of ``infra.db.mssql``; the
original exception is always chained as ``__cause__``.
"""

from __future__ import annotations

from typing import Any, List, Optional


class MsSqlError(Exception):
    """Base class for all errors raised by this package."""

    def __init__(self, message: str, item_index: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.item_index = item_index


class ConfigurationError(MsSqlError):
    """Credential or settings input could not be parsed."""


class UnsupportedParameterType(MsSqlError):
    """A query parameter declares a type outside the supported set."""

    def __init__(self, type_name: str, item_index: Optional[int] = None) -> None:
        super().__init__(f"Unsupported SQL type: {type_name}", item_index)
        self.type_name = type_name


class DatabaseConnectionError(MsSqlError):
    """Opening the connection failed (login, network or TLS)."""


class ExecutionError(MsSqlError):
    """The statement failed, timed out or the driver faulted."""


class ParameterValueError(ExecutionError):
    """A parameter value cannot be converted to its declared type."""


class ReleaseError(MsSqlError):
    """Closing the connection failed."""


class ItemExecutionError(MsSqlError):
    """A work item failed and the batch was aborted.

    ``results`` holds the output items emitted by the items processed
    before the failing one.
    """

    def __init__(
        self,
        message: str,
        item_index: int,
        stage: Optional[str] = None,
        results: Optional[List[Any]] = None,
    ) -> None:
        super().__init__(message, item_index)
        self.stage = stage
        self.results = results or []


def driver_message(exc: BaseException) -> str:
    """Return the human readable part of a driver exception.

    ``pyodbc.Error`` stores ``(sqlstate, message)`` in ``args``; str() of
    the exception shows the tuple, so the message element is preferred.
    """
    if isinstance(exc, MsSqlError):
        return exc.message
    args = getattr(exc, 'args', ())
    if len(args) > 1 and isinstance(args[1], str):
        return args[1]
    return str(exc)
