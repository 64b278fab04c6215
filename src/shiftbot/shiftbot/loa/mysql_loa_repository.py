from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..core.enums import LoaStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import LoaRecord
from .repository import LoaRepository

_COLUMNS = "id, user_id, guild_id, start_ts, end_ts, reason, status, actor_id"


def _to_record(r: Dict[str, Any]) -> LoaRecord:
    return LoaRecord(
        loa_id=int(r["id"]),
        user_id=str(r["user_id"]),
        guild_id=str(r["guild_id"]),
        start_ts=int(r["start_ts"]),
        end_ts=int(r["end_ts"]),
        reason=r.get("reason") or "",
        status=LoaStatus(r["status"]),
        actor_id=r.get("actor_id"),
    )


class MySQLLoaRepository(LoaRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, user_id: str, guild_id: str, start_ts: int, end_ts: int, reason: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO loa(user_id, guild_id, start_ts, end_ts, reason, status)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (str(user_id), str(guild_id), int(start_ts), int(end_ts), reason, LoaStatus.PENDING.value),
            )
            return int(cur.lastrowid)

    def get_by_id(self, loa_id: int) -> Optional[LoaRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM loa WHERE id=%s", (int(loa_id),))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def decide(self, *, loa_id: int, status: LoaStatus, actor_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE loa
                SET status=%s, actor_id=%s
                WHERE id=%s AND status=%s
                """,
                (status.value, str(actor_id), int(loa_id), LoaStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def list_for_user(self, *, user_id: str, guild_id: str, limit: int) -> Sequence[LoaRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM loa
                WHERE user_id=%s AND guild_id=%s
                ORDER BY id DESC
                LIMIT %s
                """,
                (str(user_id), str(guild_id), int(limit)),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_for_guild(
        self,
        *,
        guild_id: str,
        status: Optional[LoaStatus] = None,
        limit: int = 50,
    ) -> Sequence[LoaRecord]:
        clauses = ["guild_id=%s"]
        params: list[object] = [str(guild_id)]

        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM loa
                WHERE {where}
                ORDER BY id DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_to_record(r) for r in fetchall(cur)]
