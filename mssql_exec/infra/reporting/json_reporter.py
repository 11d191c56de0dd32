"""
JSON reporting utilities.

Output items contain driver values (``datetime``, ``Decimal``, ``bytes``,
``UUID`` ...) that ``json`` cannot encode natively; ``to_jsonable``
converts them before writing.
"""

from __future__ import annotations

import base64
import json
import logging
import os
from datetime import date, datetime, time
from decimal import Decimal
from pathlib import Path
from typing import IO, Any, Iterable, List
from uuid import UUID

from ...models import OutputItem


def ensure_dir(directory: str) -> None:
    """Ensure a directory exists, creating it recursively if necessary."""
    if not directory:
        return
    logging.info("[jsonReporter] ensure_dir", extra={"dir": directory})
    Path(directory).mkdir(parents=True, exist_ok=True)


def to_jsonable(value: Any) -> Any:
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(value)).decode('ascii')
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def items_payload(items: Iterable[OutputItem]) -> List[dict]:
    return [item.to_dict() for item in items]


def dump_items(items: Iterable[OutputItem], stream: IO[str]) -> None:
    json.dump(items_payload(items), stream, indent=2, ensure_ascii=False, default=to_jsonable)
    stream.write('\n')


def write_json(file_path: str, data: Any) -> None:
    """Write an object to a JSON file, ensuring the directory exists."""
    ensure_dir(os.path.dirname(file_path))
    logging.info("[jsonReporter] write_json", extra={"file": file_path})
    with open(file_path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False, default=to_jsonable)
