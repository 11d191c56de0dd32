"""
Test database connectivity with the stored credentials.

Connects using the credentials from the environment, executes a
simple query and logs the outcome.  Exits with 1 when the check fails
and with 2 when the stored credentials cannot be loaded.
"""

from __future__ import annotations

import logging
import sys

from ..config import config, load_credentials, resolve_descriptor
from ..errors import MsSqlError
from ..infra.db import connect, open_pool


def main() -> int:
    logging.basicConfig(level=config.LOG_LEVEL)
    try:
        descriptor = resolve_descriptor(load_credentials())
    except MsSqlError as e:
        logging.error('DB CONFIG FAIL: %s', e.message, exc_info=e)
        return 2
    try:
        with open_pool(descriptor, connect) as db:
            result = db.request().query('SELECT 1 AS ok')
        logging.info('DB OK: %s', result.recordset)
        return 0
    except MsSqlError as e:
        logging.error('DB FAIL: %s', e.message, exc_info=e)
        return 1


if __name__ == '__main__':
    try:
        sys.exit(main())
    except Exception:
        sys.exit(2)
