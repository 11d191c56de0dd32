"""
Expose the loaded configuration as ``config``.

Importing from this module will load environment variables and
populate a singleton ``Config`` instance.  Stored credentials are read
separately with ``load_credentials`` and merged per work item with
``resolve_descriptor``.  Example:

    from mssql_exec.config import config, load_credentials
    print(config.MSSQL_ODBC_DRIVER)
"""

from .env import config, Config, load_credentials, parse_connection_string  # noqa: F401
from .resolver import resolve_descriptor  # noqa: F401
