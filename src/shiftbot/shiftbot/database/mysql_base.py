from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True) -> Iterator[Tuple[Any, Any]]:
    """Borrow a connection for one unit of work.

    Commits when the block exits normally and rolls back when it raises; the
    connection always goes back to the pool.
    """
    conn = conn_factory.connect()
    cur = conn.cursor(dictionary=dictionary)
    try:
        yield conn, cur
    except Exception:
        conn.rollback()
        raise
    else:
        conn.commit()
    finally:
        cur.close()
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    return cur.fetchone() or None


def fetchall(cur) -> List[Dict[str, Any]]:
    return [row for row in cur.fetchall() or ()]


def optional_int(value: Any) -> Optional[int]:
    return None if value is None else int(value)


def in_clause(values: list[Any]) -> str:
    """Placeholder list for ``IN (...)``; callers pass the values as params."""
    return ", ".join("%s" for _ in values)
