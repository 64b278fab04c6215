from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import AuditLogEntry
from .repository import AuditRepository


class MySQLAuditRepository(AuditRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append(self, *, user_id: str, guild_id: str, actor_id: str, action: str, data: str, ts: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO logs(user_id, guild_id, actor_id, action, data, ts)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (str(user_id), str(guild_id), str(actor_id), action, data, int(ts)),
            )
            return int(cur.lastrowid)

    def list_for_user(self, *, user_id: str, guild_id: str, limit: int) -> Sequence[AuditLogEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, user_id, guild_id, actor_id, action, data, ts
                FROM logs
                WHERE user_id=%s AND guild_id=%s
                ORDER BY ts DESC, id DESC
                LIMIT %s
                """,
                (str(user_id), str(guild_id), int(limit)),
            )
            return [
                AuditLogEntry(
                    entry_id=int(r["id"]),
                    user_id=r["user_id"],
                    guild_id=r["guild_id"],
                    actor_id=r["actor_id"],
                    action=r["action"],
                    data=r.get("data") or "",
                    ts=int(r["ts"]),
                )
                for r in fetchall(cur)
            ]
