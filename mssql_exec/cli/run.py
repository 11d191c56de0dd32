"""
Run an operation against SQL Server from the command line.

Work items come either from a JSON file (``--items``, a list of
objects) or from the flags, which describe a single item.  Stored
credentials are read from the environment (see
``mssql_exec.config.env``).  Output items are written as JSON to
``--out`` or stdout.  When the batch aborts, the items produced so far
are still written and the exit code is 2.

Examples::

    mssql-exec --operation listUser --include-database-id
    mssql-exec --operation executeQuery \\
        --query "SELECT * FROM sys.tables WHERE name = @t" --param t:NVarChar:users
    mssql-exec --operation executeQuery --items items.json --continue-on-fail --out out.json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from ..config import config, load_credentials
from ..errors import ItemExecutionError, MsSqlError
from ..infra.reporting.json_reporter import dump_items, items_payload, write_json
from ..models import DEFAULT_QUERY, Operation, OutputItem, RowGranularity
from ..services.runner import run


def _parameter(raw: str) -> Dict[str, str]:
    parts = raw.split(':', 2)
    if len(parts) != 3 or not parts[0]:
        raise argparse.ArgumentTypeError(f"expected NAME:TYPE:VALUE, got {raw!r}")
    return {'name': parts[0], 'type': parts[1], 'value': parts[2]}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Execute T-SQL or list databases on SQL Server')
    parser.add_argument('--operation', choices=[op.value for op in Operation], default=Operation.LIST_ALL.value)
    parser.add_argument('--items', type=str, help='JSON file holding a list of work items')
    parser.add_argument('--continue-on-fail', action='store_true', help='Emit error items instead of aborting')
    parser.add_argument('--out', type=str, help='Write output items to this JSON file instead of stdout')
    parser.add_argument('--log-level', type=str, help='Logging level (default: LOG_LEVEL or INFO)')

    item = parser.add_argument_group('single work item')
    item.add_argument('--query', type=str, default=DEFAULT_QUERY, help='T-SQL statement for executeQuery')
    item.add_argument('--param', dest='params', type=_parameter, action='append', default=[],
                      metavar='NAME:TYPE:VALUE', help='Query parameter (repeatable)')
    item.add_argument('--include-database-id', action='store_true')
    item.add_argument('--include-create-date', action='store_true')
    item.add_argument('--include-state', action='store_true')
    item.add_argument('--timeout', type=int, help='Request timeout in milliseconds')
    item.add_argument('--return-type', choices=[g.value for g in RowGranularity], default=RowGranularity.EACH_ROW.value)

    override = parser.add_argument_group('connection override')
    override.add_argument('--server', type=str)
    override.add_argument('--instance', type=str)
    override.add_argument('--port', type=int)
    override.add_argument('--user', type=str)
    override.add_argument('--password', type=str)
    override.add_argument('--database', type=str)
    override.add_argument('--encrypt', action=argparse.BooleanOptionalAction, default=None)
    override.add_argument('--trust-server-certificate', action=argparse.BooleanOptionalAction, default=None)
    return parser.parse_args(argv)


def build_items(args: argparse.Namespace) -> List[Dict[str, Any]]:
    if args.items:
        with open(args.items, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return data if isinstance(data, list) else [data]
    connection_override = {
        key: getattr(args, key)
        for key in ('server', 'instance', 'port', 'user', 'password', 'database',
                    'encrypt', 'trust_server_certificate')
        if getattr(args, key) is not None
    }
    return [{
        'connection_override': connection_override,
        'query': args.query,
        'parameters': args.params,
        'additional_fields': {
            'include_database_id': args.include_database_id,
            'include_create_date': args.include_create_date,
            'include_state': args.include_state,
        },
        'options': {'timeout_ms': args.timeout, 'return_type': args.return_type},
    }]


def _emit(results: List[OutputItem], out: Optional[str]) -> None:
    if out:
        write_json(out, items_payload(results))
    else:
        dump_items(results, sys.stdout)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=(args.log_level or config.LOG_LEVEL).upper())
    logging.info('[cli/run] Parsed arguments', extra={'operation': args.operation, 'items_file': args.items})
    try:
        credentials = load_credentials()
        items = build_items(args)
    except (MsSqlError, OSError, ValueError) as err:
        # ValueError covers malformed JSON in the items file
        logging.error('Error loading cli/run input', extra={'items_file': args.items}, exc_info=err)
        return 2
    try:
        results = run(args.operation, items, credentials, continue_on_fail=args.continue_on_fail)
    except ItemExecutionError as err:
        logging.error('Error executing cli/run', extra={'item': err.item_index, 'stage': err.stage}, exc_info=err)
        _emit(err.results, args.out)
        return 2
    _emit(results, args.out)
    return 0


if __name__ == '__main__':
    try:
        sys.exit(main())
    except Exception as err:
        logging.error('Error executing cli/run', exc_info=err)
        sys.exit(2)
