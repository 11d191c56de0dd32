"""
Merge stored credentials with per-item overrides.

Each field has its own presence rule:

* strings (server, instance, user, password, database) – the override
  wins only when it is a non-empty string;
* port – the override wins only when truthy, so ``0`` means "not set";
* booleans (encrypt, trust_server_certificate) – the override wins
  whenever it is not ``None``, including an explicit ``False``.

``database`` falls back to ``'master'`` when both sides are empty.
"""

from __future__ import annotations

from typing import Optional

from ..models import (
    DEFAULT_DATABASE,
    ConnectionDescriptor,
    ConnectionOverride,
    StoredCredentials,
)


def _pick_str(override: Optional[str], stored: Optional[str], default: str = '') -> str:
    if isinstance(override, str) and override:
        return override
    return stored or default


def _pick_port(override: Optional[int], stored: int) -> int:
    return override if override else stored


def _pick_bool(override: Optional[bool], stored: bool) -> bool:
    return override if override is not None else bool(stored)


def resolve_descriptor(
    stored: StoredCredentials,
    override: Optional[ConnectionOverride] = None,
) -> ConnectionDescriptor:
    """Return the connection settings for one work item."""
    override = override or ConnectionOverride()
    return ConnectionDescriptor(
        server=_pick_str(override.server, stored.server),
        instance=_pick_str(override.instance, stored.instance),
        port=_pick_port(override.port, stored.port),
        user=_pick_str(override.user, stored.user),
        password=_pick_str(override.password, stored.password),
        database=_pick_str(override.database, stored.database, DEFAULT_DATABASE),
        encrypt=_pick_bool(override.encrypt, stored.encrypt),
        trust_server_certificate=_pick_bool(
            override.trust_server_certificate, stored.trust_server_certificate
        ),
    )
