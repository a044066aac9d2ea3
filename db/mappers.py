"""
db/mappers.py
-------------
Ready-made result mappers for QueryExecutor.query.
A mapper receives the executed cursor once and returns any value.
"""

from typing import Any, Callable, Optional


def fetch_all(cursor) -> list[tuple]:
    """All rows as tuples."""
    return list(cursor.fetchall())


def fetch_one(cursor) -> Optional[tuple]:
    """The first row, or None if the query returned nothing."""
    return cursor.fetchone()


def fetch_scalar(cursor) -> Any:
    """First column of the first row, or None."""
    row = cursor.fetchone()
    return row[0] if row else None


def rows_as_dicts(cursor) -> list[dict[str, Any]]:
    """Convert cursor result to a list of dicts keyed by column name."""
    desc = cursor.description
    if not desc:
        return []
    names = [d[0] for d in desc]
    return [dict(zip(names, row, strict=True)) for row in cursor.fetchall()]


def as_model(factory: Callable[..., Any]) -> Callable[[Any], list]:
    """
    Build a mapper that turns every row into ``factory(**columns)``.

    Args:
        factory: A dataclass or any callable accepting the column names
            as keyword arguments.

    Returns:
        A mapper producing a list of ``factory`` results.
    """
    def mapper(cursor) -> list:
        return [factory(**row) for row in rows_as_dicts(cursor)]

    return mapper
