"""Shared fixtures: an in-memory stand-in for psycopg2's pool, connections and cursors."""

import threading

import pytest
from psycopg2 import pool as pg_pool

from db.connection import ConnectionSource
from db.executor import QueryExecutor

TEST_URL = "postgresql://localhost:5432/test"


class Script:
    """What every fake cursor returns or raises, shared across a test."""

    def __init__(self):
        self.rows: list[tuple] = []
        self.description = None
        self.rowcount = 0
        self.execute_error: Exception | None = None
        self.commit_error: Exception | None = None
        self.executed: list[tuple] = []


class FakeCursor:
    def __init__(self, script: Script):
        self.script = script
        self.closed = False
        self.description = None
        self.rowcount = -1
        self._rows: list[tuple] = []

    def execute(self, sql, params=None):
        self.script.executed.append((sql, params))
        if self.script.execute_error is not None:
            raise self.script.execute_error
        self.description = self.script.description
        self.rowcount = self.script.rowcount
        self._rows = list(self.script.rows)

    def fetchone(self):
        return self._rows.pop(0) if self._rows else None

    def fetchall(self):
        rows, self._rows = self._rows, []
        return rows

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class FakeConnection:
    def __init__(self, script: Script):
        self.script = script
        self.closed = 0
        self.commits = 0
        self.rollbacks = 0
        self.cursors: list[FakeCursor] = []

    def cursor(self):
        cur = FakeCursor(self.script)
        self.cursors.append(cur)
        return cur

    def commit(self):
        if self.script.commit_error is not None:
            raise self.script.commit_error
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1

    def close(self):
        self.closed = 1


class FakePool:
    """Mirrors ThreadedConnectionPool's getconn/putconn/closeall contract."""

    def __init__(self, minconn, maxconn, *, script: Script, **kwargs):
        self.minconn = minconn
        self.maxconn = maxconn
        self.kwargs = kwargs
        self.script = script
        self.closed = False
        self.discarded: list[FakeConnection] = []
        self._lock = threading.Lock()
        self.idle = [FakeConnection(script) for _ in range(minconn)]
        self.used: list[FakeConnection] = []

    def getconn(self):
        with self._lock:
            if self.closed:
                raise pg_pool.PoolError("connection pool is closed")
            if self.idle:
                conn = self.idle.pop()
            elif len(self.used) < self.maxconn:
                conn = FakeConnection(self.script)
            else:
                raise pg_pool.PoolError("connection pool exhausted")
            self.used.append(conn)
            return conn

    def putconn(self, conn, close=False):
        with self._lock:
            self.used.remove(conn)
            if close:
                self.discarded.append(conn)
            else:
                self.idle.append(conn)

    def closeall(self):
        with self._lock:
            self.closed = True
            for conn in self.idle + self.used:
                conn.close()


@pytest.fixture
def script() -> Script:
    return Script()


@pytest.fixture
def pool_factory(script):
    created: list[FakePool] = []

    def factory(minconn, maxconn, **kwargs):
        p = FakePool(minconn, maxconn, script=script, **kwargs)
        created.append(p)
        return p

    factory.created = created
    return factory


@pytest.fixture
def source(pool_factory):
    src = ConnectionSource(pool_factory=pool_factory)
    src.initialize(TEST_URL, "tester", "secret")
    yield src
    src.shutdown()


@pytest.fixture
def fake_pool(source, pool_factory) -> FakePool:
    return pool_factory.created[-1]


@pytest.fixture
def executor(source):
    ex = QueryExecutor(source)
    yield ex
    ex.close()
