from __future__ import annotations

from types import SimpleNamespace

import pytest

from mssql_exec.infra.db.mssql import Db
from mssql_exec.models import StoredCredentials


class FakeDriverError(Exception):
    """Stands in for pyodbc.Error: args are (sqlstate, message)."""


def result_set(columns, rows):
    return {'columns': list(columns), 'rows': [tuple(r) for r in rows]}


def rowcount(n):
    return {'rowcount': n}


class FakeCursor:
    def __init__(self, sets, error=None):
        self._sets = list(sets) or [rowcount(-1)]
        self._pos = 0
        self.error = error
        self.executed = []
        self.closed = False

    def execute(self, sql, *args):
        self.executed.append((sql, args))
        if self.error is not None:
            raise self.error
        return self

    @property
    def _current(self):
        return self._sets[self._pos]

    @property
    def description(self):
        cols = self._current.get('columns')
        if cols is None:
            return None
        return [(c, None, None, None, None, None, None) for c in cols]

    @property
    def rowcount(self):
        return self._current.get('rowcount', -1)

    def fetchall(self):
        return list(self._current.get('rows', []))

    def nextset(self):
        if self._pos + 1 < len(self._sets):
            self._pos += 1
            return True
        return False

    def close(self):
        self.closed = True


class FakeConnection:
    def __init__(self, sets=(), error=None, close_error=None):
        self.sets = list(sets)
        self.error = error
        self.close_error = close_error
        self.cursors = []
        self.timeout = 0
        self.close_calls = 0

    def cursor(self):
        cur = FakeCursor(self.sets, self.error)
        self.cursors.append(cur)
        return cur

    @property
    def executed(self):
        return [call for cur in self.cursors for call in cur.executed]

    def close(self):
        self.close_calls += 1
        if self.close_error is not None:
            raise self.close_error


class FakeServer:
    """Connector double: one scripted connection (or exception) per connect call."""

    def __init__(self, *script):
        self.script = list(script)
        self.descriptors = []
        self.connections = []

    def connect(self, descriptor):
        self.descriptors.append(descriptor)
        behaviour = self.script.pop(0)
        if isinstance(behaviour, Exception):
            raise behaviour
        self.connections.append(behaviour)
        return Db(behaviour, FakeDriverError)


@pytest.fixture
def credentials():
    return StoredCredentials(
        server='db.local',
        instance='',
        port=1433,
        user='sa',
        password='secret',
        database='master',
        encrypt=False,
        trust_server_certificate=False,
    )


@pytest.fixture
def fake_pyodbc():
    """A pyodbc look-alike whose connect() hands out FakeConnections."""
    calls = []
    connections = []

    def connect(conn_str, **kwargs):
        calls.append((conn_str, kwargs))
        conn = FakeConnection()
        connections.append(conn)
        return conn

    return SimpleNamespace(connect=connect, Error=FakeDriverError, calls=calls, connections=connections)
