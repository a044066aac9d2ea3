"""
db/executor.py
--------------
Runs one parameterized statement per call against a ConnectionSource.

Each call leases a connection, binds parameters, executes, maps the
result and releases everything before returning, on success and failure
alike. The ``*_async`` variants run the same sequence on a bounded worker
pool and deliver the outcome through a Dispatcher.
"""

from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from typing import Any, Callable, Optional, TypeVar

import psycopg2

from config import ASYNC_MAX_WORKERS
from db.connection import ConnectionSource
from db.dispatch import Dispatcher, ImmediateDispatcher
from db.errors import BindError, DataAccessError, MappingError, StatementError
from db.statement import Binder, Statement, apply_binder
from utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
Mapper = Callable[[Any], T]


class QueryExecutor:
    """
    Synchronous and background execution of single statements.

    Args:
        source: The ConnectionSource to lease connections from.
        dispatcher: Where async callbacks run. The default,
            ImmediateDispatcher, runs them on the worker thread; GUI
            callers should pass a QueueDispatcher drained by their main
            loop, asyncio callers an AsyncioDispatcher.
        max_workers: Size of the background worker pool.
    """

    def __init__(
        self,
        source: ConnectionSource,
        dispatcher: Optional[Dispatcher] = None,
        max_workers: int = ASYNC_MAX_WORKERS,
    ):
        self.source = source
        self.dispatcher = dispatcher or ImmediateDispatcher()
        self._workers = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="db-worker"
        )

    # ── SYNC ──────────────────────────────────────────────

    def query(self, sql: str, binder: Optional[Binder], mapper: Mapper) -> T:
        """
        Execute a query, map its result and commit.

        Args:
            sql: SQL text with ``%s`` placeholders.
            binder: Fills the statement parameters, or None.
            mapper: Called once with the executed cursor.

        Returns:
            Whatever ``mapper`` returns.

        Raises:
            ConnectionUnavailable, BindError, StatementError, MappingError
        """
        statement = Statement(sql)
        with self.source.connection() as conn:
            try:
                params = apply_binder(statement, binder)
                with conn.cursor() as cur:
                    _execute(cur, statement, params)
                    try:
                        result = mapper(cur)
                    except Exception as e:
                        raise MappingError(f"Result mapper failed: {e}", e) from e
                # INSERT ... RETURNING, nextval() and side-effecting functions must persist.
                conn.commit()
                return result
            except DataAccessError as e:
                _end_transaction(conn)
                logger.error(f"Query failed: {e}")
                raise
            except psycopg2.Error as e:
                _end_transaction(conn)
                logger.error(f"Query failed: {e}")
                raise StatementError(f"Query failed: {e}", e) from e

    def update(self, sql: str, binder: Optional[Binder]) -> bool:
        """
        Execute a write (INSERT/UPDATE/DELETE) and commit it.

        Returns:
            True if at least one row was affected, False otherwise.

        Raises:
            ConnectionUnavailable, BindError, StatementError
        """
        statement = Statement(sql)
        with self.source.connection() as conn:
            try:
                params = apply_binder(statement, binder)
                with conn.cursor() as cur:
                    _execute(cur, statement, params)
                    changed = cur.rowcount > 0
                conn.commit()
                return changed
            except DataAccessError as e:
                _end_transaction(conn)
                logger.error(f"Update failed: {e}")
                raise
            except psycopg2.Error as e:
                _end_transaction(conn)
                logger.error(f"Update failed: {e}")
                raise StatementError(f"Update failed: {e}", e) from e

    # ── ASYNC ─────────────────────────────────────────────

    def query_async(
        self,
        sql: str,
        binder: Optional[Binder],
        mapper: Mapper,
        on_success: Optional[Callable[[T], Any]] = None,
        on_error: Optional[Callable[[BaseException], Any]] = None,
    ) -> "Future[T]":
        """
        Run ``query`` in the background.

        Returns:
            A Future resolved with the mapped value or the error. The
            matching callback is handed to the dispatcher exactly once.
        """
        return self._submit(self.query, (sql, binder, mapper), on_success, on_error)

    def update_async(
        self,
        sql: str,
        binder: Optional[Binder],
        on_success: Optional[Callable[[bool], Any]] = None,
        on_error: Optional[Callable[[BaseException], Any]] = None,
    ) -> "Future[bool]":
        """Run ``update`` in the background. See ``query_async``."""
        return self._submit(self.update, (sql, binder), on_success, on_error)

    def _submit(self, fn, args, on_success, on_error) -> Future:
        future = self._workers.submit(fn, *args)
        future.add_done_callback(lambda f: self._deliver(f, on_success, on_error))
        return future

    def _deliver(self, future: Future, on_success, on_error) -> None:
        if future.cancelled():
            callback, outcome = on_error, CancelledError()
        elif future.exception() is not None:
            callback, outcome = on_error, future.exception()
        else:
            callback, outcome = on_success, future.result()
        if callback is None:
            return
        try:
            self.dispatcher.dispatch(callback, outcome)
        except Exception:
            name = getattr(callback, "__name__", callback)
            logger.exception(f"Could not dispatch {outcome!r} to {name!r}; outcome lost")

    # ── LIFECYCLE ─────────────────────────────────────────

    def close(self, wait: bool = True) -> None:
        """Stop accepting background work; optionally wait for running calls."""
        self._workers.shutdown(wait=wait)

    def __enter__(self) -> "QueryExecutor":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def _execute(cur, statement: Statement, params: tuple) -> None:
    try:
        cur.execute(statement.sql, params or None)
    except psycopg2.Error as e:
        raise StatementError(f"Statement failed: {e}", e) from e
    except (TypeError, IndexError, KeyError) as e:
        # psycopg2 raises these when placeholders and parameters disagree.
        raise BindError(f"Parameters do not match placeholders: {e}", e) from e


def _end_transaction(conn) -> None:
    """Roll back whatever is still open before the connection goes back."""
    try:
        conn.rollback()
    except psycopg2.Error as e:
        logger.warning(f"Rollback failed: {e}")
