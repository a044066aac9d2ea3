"""
db/connection.py
----------------
Manages the PostgreSQL connection pool.
Uses psycopg2's ThreadedConnectionPool so connections can be leased
from background workers as well as the main thread.
"""

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Optional

import psycopg2
from psycopg2 import pool

from config import POOL_MAX_SIZE, POOL_MIN_IDLE
from db.errors import ConnectionUnavailable
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PoolConfig:
    """
    Settings the pool was created with.

    Attributes:
        url: libpq connection URL or DSN (without credentials).
        username: Database role.
        password: Role password (hidden from repr).
        max_size: Maximum number of open connections.
        min_idle: Connections opened up front and kept around.
    """
    url: str
    username: str
    password: str = field(repr=False)
    max_size: int = POOL_MAX_SIZE
    min_idle: int = POOL_MIN_IDLE


class ConnectionSource:
    """
    Owns one connection pool and hands out leases from it.

    Create one per application and pass it to whatever needs database
    access. ``pool_factory`` is called as
    ``pool_factory(min_idle, max_size, dsn=..., user=..., password=...)``.
    """

    def __init__(self, pool_factory: Callable[..., Any] = pool.ThreadedConnectionPool):
        self._pool_factory = pool_factory
        self._pool: Any = None
        self._config: Optional[PoolConfig] = None
        self._lock = threading.Lock()
        # id(conn) -> (conn, pool it was leased from)
        self._leases: dict[int, tuple[Any, Any]] = {}

    # ── LIFECYCLE ─────────────────────────────────────────

    def initialize(self, url: str, username: str, password: str) -> None:
        """
        Create the pool. Calling it again replaces the current pool.

        Args:
            url: Connection URL, e.g. ``postgresql://localhost:5432/app``.
            username: Database role.
            password: Role password.

        Raises:
            ConnectionUnavailable: If the pool cannot open its initial connections.
        """
        cfg = PoolConfig(url=url, username=username, password=password)
        try:
            new_pool = self._pool_factory(
                cfg.min_idle, cfg.max_size,
                dsn=cfg.url, user=cfg.username, password=cfg.password,
            )
        except psycopg2.Error as e:
            logger.error(f"Failed to initialize database pool: {e}")
            raise ConnectionUnavailable(f"Cannot create pool for {url}: {e}", e) from e

        old_pool = self._pool
        with self._lock:
            self._pool = new_pool
            self._config = cfg
            outstanding = sum(1 for _, owner in self._leases.values() if owner is old_pool)

        if old_pool is not None:
            if outstanding:
                logger.warning(
                    f"Pool replaced with {outstanding} connection(s) still leased; "
                    "previous pool left open."
                )
            else:
                old_pool.closeall()
        logger.info(
            f"Database connection pool initialized "
            f"(min_idle={cfg.min_idle}, max_size={cfg.max_size})."
        )

    def shutdown(self) -> None:
        """Close all connections in the pool. Safe to call more than once."""
        with self._lock:
            current, self._pool = self._pool, None
            self._config = None
        if current is not None:
            current.closeall()
            logger.info("Database connection pool closed.")

    # ── LEASING ───────────────────────────────────────────

    def lease(self) -> Any:
        """
        Get a connection from the pool.

        Returns:
            A psycopg2 connection object. Hand it back with ``release``.

        Raises:
            ConnectionUnavailable: If the pool is not initialized, closed,
                exhausted, or the database is unreachable.
        """
        current = self._pool
        if current is None:
            raise ConnectionUnavailable("Database pool not initialized. Call initialize() first.")
        try:
            conn = current.getconn()
        except psycopg2.Error as e:
            logger.error(f"Failed to lease connection: {e}")
            raise ConnectionUnavailable(f"Cannot lease connection: {e}", e) from e
        with self._lock:
            self._leases[id(conn)] = (conn, current)
        return conn

    def release(self, conn: Any) -> None:
        """
        Return a connection to the pool it was leased from.

        Broken connections are discarded instead of being reused.
        """
        with self._lock:
            entry = self._leases.pop(id(conn), None)
        if entry is None:
            logger.warning("Ignoring release of a connection this source did not lease.")
            return
        owner = entry[1]
        if getattr(owner, "closed", False):
            return
        owner.putconn(conn, close=bool(getattr(conn, "closed", False)))

    @contextmanager
    def connection(self) -> Iterator[Any]:
        """Lease a connection for the duration of a ``with`` block."""
        conn = self.lease()
        try:
            yield conn
        finally:
            self.release(conn)

    # ── INTROSPECTION ─────────────────────────────────────

    @property
    def is_initialized(self) -> bool:
        return self._pool is not None

    @property
    def config(self) -> Optional[PoolConfig]:
        return self._config

    @property
    def leased_count(self) -> int:
        """Number of connections currently out on lease."""
        with self._lock:
            return len(self._leases)
