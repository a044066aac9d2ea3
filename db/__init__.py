"""
db/ - Database Layer
====================
Connection pooling and single-statement execution against PostgreSQL.
This layer is the lowest in the architecture and has no dependencies on other layers.

Typical use:
    source = ConnectionSource()
    source.initialize(DATABASE_URL, DB_USER, DB_PASS)
    executor = QueryExecutor(source)
    rows = executor.query("SELECT id, name FROM users WHERE id = %s",
                          lambda stmt: stmt.bind(user_id), rows_as_dicts)
"""

from db.connection import ConnectionSource, PoolConfig
from db.dispatch import AsyncioDispatcher, Dispatcher, ImmediateDispatcher, QueueDispatcher
from db.errors import (
    BindError,
    ConnectionUnavailable,
    DataAccessError,
    MappingError,
    StatementError,
)
from db.executor import QueryExecutor
from db.statement import Statement

__all__ = [
    "ConnectionSource",
    "PoolConfig",
    "QueryExecutor",
    "Statement",
    "Dispatcher",
    "ImmediateDispatcher",
    "QueueDispatcher",
    "AsyncioDispatcher",
    "DataAccessError",
    "ConnectionUnavailable",
    "BindError",
    "StatementError",
    "MappingError",
]
