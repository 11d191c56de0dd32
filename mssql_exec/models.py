"""
Data types shared by the resolver, executor and runner.

Work items arrive as plain mappings (parsed JSON).  ``WorkItem.from_dict``
accepts both the snake_case keys used by this package and the camelCase
keys of the original node parameters (``connectionOverride``,
``queryParameters``, ``additionalFields``, ``returnType`` ...).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

DEFAULT_PORT = 1433
DEFAULT_DATABASE = 'master'
DEFAULT_QUERY = 'SELECT name FROM sys.databases ORDER BY name'


class Operation(str, Enum):
    """Operation selected for a whole run."""

    EXECUTE_QUERY = 'executeQuery'
    LIST_ALL = 'listAll'
    LIST_USER = 'listUser'
    LIST_SYSTEM = 'listSystem'

    @property
    def is_listing(self) -> bool:
        return self is not Operation.EXECUTE_QUERY


class RowGranularity(str, Enum):
    """How executeQuery results are turned into output items."""

    EACH_ROW = 'eachRow'
    ALL_ROWS = 'allRows'


@dataclass
class StoredCredentials:
    """Values held by the credential store."""

    server: str = ''
    instance: str = ''
    port: int = DEFAULT_PORT
    user: str = ''
    password: str = field(default='', repr=False)
    database: str = DEFAULT_DATABASE
    encrypt: bool = False
    trust_server_certificate: bool = False


@dataclass
class ConnectionOverride:
    """Per-item overrides; ``None`` means the field was not set."""

    server: Optional[str] = None
    instance: Optional[str] = None
    port: Optional[int] = None
    user: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    database: Optional[str] = None
    encrypt: Optional[bool] = None
    trust_server_certificate: Optional[bool] = None

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> 'ConnectionOverride':
        data = data or {}
        trust = _first(data, 'trust_server_certificate', 'trustServerCertificate')
        return cls(
            server=data.get('server'),
            instance=data.get('instance'),
            port=_optional_int(data.get('port')),
            user=data.get('user'),
            password=data.get('password'),
            database=data.get('database'),
            encrypt=_optional_bool(data.get('encrypt')),
            trust_server_certificate=_optional_bool(trust),
        )


@dataclass(frozen=True)
class ConnectionDescriptor:
    """Fully resolved settings for one connection."""

    server: str
    port: int
    user: str
    password: str = field(repr=False)
    database: str
    encrypt: bool
    trust_server_certificate: bool
    instance: str = ''

    @property
    def instance_name(self) -> Optional[str]:
        return self.instance or None


@dataclass(frozen=True)
class QueryParameter:
    name: str
    type: str
    value: str = ''


@dataclass(frozen=True)
class AdditionalFields:
    include_database_id: bool = False
    include_create_date: bool = False
    include_state: bool = False

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> 'AdditionalFields':
        data = data or {}
        return cls(
            include_database_id=bool(_first(data, 'include_database_id', 'includeDatabaseId')),
            include_create_date=bool(_first(data, 'include_create_date', 'includeCreateDate')),
            include_state=bool(_first(data, 'include_state', 'includeState')),
        )


@dataclass(frozen=True)
class ExecutionOptions:
    timeout_ms: Optional[int] = None
    return_type: RowGranularity = RowGranularity.EACH_ROW

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> 'ExecutionOptions':
        data = data or {}
        timeout = _first(data, 'timeout_ms', 'timeout')
        return_type = _first(data, 'return_type', 'returnType') or RowGranularity.EACH_ROW.value
        return cls(
            timeout_ms=_optional_int(timeout),
            return_type=RowGranularity(return_type),
        )


@dataclass
class WorkItem:
    """One input record; drives exactly one connection lifecycle."""

    index: int
    connection_override: ConnectionOverride = field(default_factory=ConnectionOverride)
    query: str = DEFAULT_QUERY
    parameters: List[QueryParameter] = field(default_factory=list)
    additional_fields: AdditionalFields = field(default_factory=AdditionalFields)
    options: ExecutionOptions = field(default_factory=ExecutionOptions)

    @classmethod
    def from_dict(cls, index: int, data: Optional[Mapping[str, Any]]) -> 'WorkItem':
        data = data or {}
        raw_params = _first(data, 'parameters', 'queryParameters') or []
        # the node UI nests the list as {"parameters": [...]}
        if isinstance(raw_params, Mapping):
            raw_params = raw_params.get('parameters') or []
        parameters = [
            QueryParameter(
                name=str(p.get('name', '')),
                type=str(p.get('type', 'VarChar')),
                value='' if p.get('value') is None else str(p.get('value')),
            )
            for p in raw_params
        ]
        query = data.get('query')
        return cls(
            index=index,
            connection_override=ConnectionOverride.from_dict(
                _first(data, 'connection_override', 'connectionOverride')
            ),
            query=DEFAULT_QUERY if query is None else str(query),
            parameters=parameters,
            additional_fields=AdditionalFields.from_dict(
                _first(data, 'additional_fields', 'additionalFields')
            ),
            options=ExecutionOptions.from_dict(data.get('options')),
        )


@dataclass(frozen=True)
class OutputItem:
    """A result row (or aggregate, or error) paired with its input index."""

    json: Dict[str, Any]
    paired_item: int

    def to_dict(self) -> Dict[str, Any]:
        return {'json': self.json, 'pairedItem': {'item': self.paired_item}}


def _first(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == '':
        return None
    return int(value)


def _optional_bool(value: Any) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip().lower() in ('true', 'yes', '1')
    return bool(value)
