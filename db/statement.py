"""
db/statement.py
---------------
A parameterized SQL statement built fresh for every call.
Placeholders use psycopg2's ``%s`` style; binders fill them positionally.
"""

from typing import Any, Callable, Optional

from db.errors import BindError, StatementError


class Statement:
    """
    SQL text plus the positional parameters bound to it.

    Binders either append values with ``bind`` or set a 1-based
    position with ``set``::

        def binder(stmt):
            stmt.set(1, user_id)
            stmt.set(2, category)
    """

    def __init__(self, sql: str):
        if not sql or not sql.strip():
            raise StatementError("SQL text is empty.")
        self.sql = sql
        self._params: list[Any] = []
        self._unset: set[int] = set()

    def bind(self, *values: Any) -> "Statement":
        """Append values after the last bound parameter."""
        self._params.extend(values)
        return self

    def set(self, position: int, value: Any) -> "Statement":
        """Set the parameter at ``position`` (1-based)."""
        if not isinstance(position, int) or position < 1:
            raise BindError(f"Parameter position must be a positive integer, got {position!r}.")
        index = position - 1
        if index >= len(self._params):
            # Leave a gap that must be filled before execution.
            gap = range(len(self._params), index)
            self._params.extend([None] * (index + 1 - len(self._params)))
            self._unset.update(gap)
        self._unset.discard(index)
        self._params[index] = value
        return self

    @property
    def params(self) -> tuple:
        """
        Bound parameters in order.

        Raises:
            BindError: If a position was skipped by ``set``.
        """
        if self._unset:
            missing = ", ".join(str(i + 1) for i in sorted(self._unset))
            raise BindError(f"Parameter(s) {missing} were never set.")
        return tuple(self._params)

    def __repr__(self) -> str:
        return f"Statement({self.sql!r}, params={len(self._params)})"


Binder = Callable[[Statement], None]


def apply_binder(statement: Statement, binder: Optional[Binder]) -> tuple:
    """
    Run ``binder`` against ``statement`` and return the final parameters.

    Raises:
        BindError: If the binder raises or leaves a position unset.
    """
    if binder is not None:
        try:
            binder(statement)
        except BindError:
            raise
        except Exception as e:
            raise BindError(f"Binder failed: {e}", e) from e
    return statement.params
