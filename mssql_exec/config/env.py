"""
Environment configuration loader.

Variables are read from the process environment after loading a
``.env`` file (if present) with ``python-dotenv``.  Two groups exist:

Runtime settings, exposed through the ``config`` singleton:

* ``MSSQL_ODBC_DRIVER`` – ODBC driver name (default ``'ODBC Driver 18 for SQL Server'``).
* ``MSSQL_LOGIN_TIMEOUT`` – login timeout in seconds (default ``15``).
* ``MSSQL_ARITH_ABORT`` – run ``SET ARITHABORT ON`` on new connections (default ``true``).
* ``LOG_LEVEL`` – logging level for the CLIs (default ``'INFO'``).

Stored credentials, read on demand by ``load_credentials``:

* ``MSSQL_CONNECTION_STRING`` – optional ``Key=Value;`` connection string.
* ``MSSQL_SERVER``, ``MSSQL_INSTANCE``, ``MSSQL_PORT`` (default ``1433``),
  ``MSSQL_USER``, ``MSSQL_PASSWORD``, ``MSSQL_DATABASE`` (default ``'master'``),
  ``MSSQL_ENCRYPT`` and ``MSSQL_TRUST_SERVER_CERTIFICATE`` (default ``false``).

Individual variables take precedence over values parsed from the
connection string.  User and password are not checked here; the server
rejects the login when they are missing.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from dotenv import load_dotenv

from ..errors import ConfigurationError
from ..models import DEFAULT_DATABASE, DEFAULT_PORT, StoredCredentials

load_dotenv()

_TRUE_VALUES = ('true', 'yes', '1')


@dataclass
class Config:
    """Holds runtime settings for the application."""

    MSSQL_ODBC_DRIVER: str = 'ODBC Driver 18 for SQL Server'
    MSSQL_LOGIN_TIMEOUT: int = 15
    MSSQL_ARITH_ABORT: bool = True
    LOG_LEVEL: str = 'INFO'


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() in _TRUE_VALUES


def _load_env() -> Config:
    """Load runtime settings from environment variables.

    Raises:
        ConfigurationError: If a numeric variable cannot be parsed.
    """
    login_timeout = os.environ.get('MSSQL_LOGIN_TIMEOUT')
    arith_abort = os.environ.get('MSSQL_ARITH_ABORT')
    return Config(
        MSSQL_ODBC_DRIVER=os.environ.get('MSSQL_ODBC_DRIVER') or Config.MSSQL_ODBC_DRIVER,
        MSSQL_LOGIN_TIMEOUT=_parse_int('MSSQL_LOGIN_TIMEOUT', login_timeout) if login_timeout else Config.MSSQL_LOGIN_TIMEOUT,
        MSSQL_ARITH_ABORT=_parse_bool(arith_abort) if arith_abort else Config.MSSQL_ARITH_ABORT,
        LOG_LEVEL=(os.environ.get('LOG_LEVEL') or Config.LOG_LEVEL).upper(),
    )


def parse_connection_string(input_str: str) -> StoredCredentials:
    """Parse a ``Key=Value;`` SQL Server connection string.

    Recognises the usual ADO.NET aliases (``Server``/``Data Source``,
    ``User Id``/``UID``, ``Password``/``PWD``, ``Database``/``Initial
    Catalog``).  The server may carry a named instance
    (``host\\INSTANCE``) and/or a port (``host,1433``).

    Raises:
        ConfigurationError: If the string is empty, has no server, or the
            port is not numeric.
    """
    s = (input_str or '').strip()
    if not s:
        raise ConfigurationError('Empty connection string')
    kv: Dict[str, str] = {}
    for part in s.split(';'):
        if '=' not in part:
            continue
        k, v = part.split('=', 1)
        kv[k.strip().lower()] = v.strip()
    server_raw = kv.get('server') or kv.get('data source') or kv.get('address') or kv.get('addr')
    if not server_raw:
        raise ConfigurationError('No Server= found in connection string')
    if server_raw.lower().startswith('tcp:'):
        server_raw = server_raw[4:]
    server = server_raw
    port = DEFAULT_PORT
    m = re.match(r'^(.*?),\s*(\S+)$', server_raw)
    if m:
        server = m.group(1)
        port = _parse_int('port', m.group(2))
    instance = ''
    if '\\' in server:
        server, instance = server.split('\\', 1)
    return StoredCredentials(
        server=server,
        instance=instance,
        port=port,
        user=kv.get('user id') or kv.get('uid') or kv.get('user') or '',
        password=kv.get('password') or kv.get('pwd') or '',
        database=kv.get('database') or kv.get('initial catalog') or DEFAULT_DATABASE,
        encrypt=_parse_bool(kv.get('encrypt') or 'false'),
        trust_server_certificate=_parse_bool(
            kv.get('trustservercertificate') or kv.get('trust server certificate') or 'false'
        ),
    )


def load_credentials(environ: Optional[Mapping[str, str]] = None) -> StoredCredentials:
    """Build the stored credentials from the environment.

    Args:
        environ: Mapping to read from; defaults to ``os.environ``.

    Raises:
        ConfigurationError: If ``MSSQL_PORT`` or the connection string is invalid.
    """
    env = os.environ if environ is None else environ
    raw = env.get('MSSQL_CONNECTION_STRING')
    creds = parse_connection_string(raw) if raw else StoredCredentials()

    def _str(name: str, current: str) -> str:
        value = env.get(name)
        return value if value else current

    port = env.get('MSSQL_PORT')
    encrypt = env.get('MSSQL_ENCRYPT')
    trust = env.get('MSSQL_TRUST_SERVER_CERTIFICATE')
    return StoredCredentials(
        server=_str('MSSQL_SERVER', creds.server),
        instance=_str('MSSQL_INSTANCE', creds.instance),
        port=_parse_int('MSSQL_PORT', port) if port else creds.port,
        user=_str('MSSQL_USER', creds.user),
        password=_str('MSSQL_PASSWORD', creds.password),
        database=_str('MSSQL_DATABASE', creds.database),
        encrypt=_parse_bool(encrypt) if encrypt else creds.encrypt,
        trust_server_certificate=_parse_bool(trust) if trust else creds.trust_server_certificate,
    )


# Create a single configuration instance when this module is imported.
config: Config = _load_env()
