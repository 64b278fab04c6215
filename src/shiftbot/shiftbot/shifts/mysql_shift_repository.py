from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..core.enums import ShiftStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, optional_int
from .model import ShiftFilter, ShiftRecord
from .repository import ShiftRepository

_COLUMNS = "id, user_id, guild_id, start_ts, pause_ts, resume_ts, end_ts, total_seconds, type, status"


def _to_record(r: Dict[str, Any]) -> ShiftRecord:
    return ShiftRecord(
        shift_id=int(r["id"]),
        user_id=str(r["user_id"]),
        guild_id=str(r["guild_id"]),
        shift_type=r.get("type") or "normal",
        status=ShiftStatus(r["status"]),
        start_ts=int(r["start_ts"]),
        pause_ts=optional_int(r.get("pause_ts")),
        resume_ts=optional_int(r.get("resume_ts")),
        end_ts=optional_int(r.get("end_ts")),
        total_seconds=int(r.get("total_seconds") or 0),
    )


class MySQLShiftRepository(ShiftRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, user_id: str, guild_id: str, shift_type: str, start_ts: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO shifts(user_id, guild_id, start_ts, total_seconds, type, status)
                VALUES(%s,%s,%s,0,%s,%s)
                """,
                (str(user_id), str(guild_id), int(start_ts), shift_type, ShiftStatus.ACTIVE.value),
            )
            return int(cur.lastrowid)

    def get_by_id(self, shift_id: int) -> Optional[ShiftRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM shifts WHERE id=%s", (int(shift_id),))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_open_for_user(
        self,
        *,
        user_id: str,
        guild_id: str,
        statuses: Optional[Sequence[ShiftStatus]] = None,
    ) -> Optional[ShiftRecord]:
        wanted = list(statuses or ShiftStatus.open_states())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM shifts
                WHERE user_id=%s AND guild_id=%s AND status IN ({in_clause(wanted)})
                ORDER BY id DESC
                LIMIT 1
                """,
                (str(user_id), str(guild_id), *(s.value for s in wanted)),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def mark_paused(self, *, shift_id: int, pause_ts: int) -> bool:
        # Elapsed time is computed in SQL against the row being updated, so two
        # racing pauses cannot both add the same interval.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE shifts
                SET total_seconds = total_seconds + GREATEST(0, %s - start_ts),
                    pause_ts=%s, status=%s
                WHERE id=%s AND status=%s
                """,
                (
                    int(pause_ts),
                    int(pause_ts),
                    ShiftStatus.PAUSED.value,
                    int(shift_id),
                    ShiftStatus.ACTIVE.value,
                ),
            )
            return cur.rowcount > 0

    def mark_resumed(self, *, shift_id: int, resume_ts: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE shifts
                SET resume_ts=%s, start_ts=%s, status=%s
                WHERE id=%s AND status=%s
                """,
                (
                    int(resume_ts),
                    int(resume_ts),
                    ShiftStatus.ACTIVE.value,
                    int(shift_id),
                    ShiftStatus.PAUSED.value,
                ),
            )
            return cur.rowcount > 0

    def mark_ended(self, *, shift_id: int, end_ts: int) -> bool:
        # MySQL applies SET assignments left to right: total_seconds must be
        # computed before status is overwritten.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE shifts
                SET total_seconds = total_seconds
                        + CASE WHEN status=%s THEN GREATEST(0, %s - start_ts) ELSE 0 END,
                    end_ts=%s, status=%s
                WHERE id=%s AND status IN (%s,%s)
                """,
                (
                    ShiftStatus.ACTIVE.value,
                    int(end_ts),
                    int(end_ts),
                    ShiftStatus.ENDED.value,
                    int(shift_id),
                    ShiftStatus.ACTIVE.value,
                    ShiftStatus.PAUSED.value,
                ),
            )
            return cur.rowcount > 0

    def list_matching(
        self,
        *,
        shift_filter: ShiftFilter,
        statuses: Optional[Sequence[ShiftStatus]] = None,
    ) -> Sequence[ShiftRecord]:
        clauses = ["guild_id=%s"]
        params: list[object] = [str(shift_filter.guild_id)]

        if statuses:
            clauses.append(f"status IN ({in_clause(list(statuses))})")
            params.extend(s.value for s in statuses)
        if shift_filter.user_id is not None:
            clauses.append("user_id=%s")
            params.append(str(shift_filter.user_id))
        if shift_filter.before_ts is not None:
            clauses.append("start_ts < %s")
            params.append(int(shift_filter.before_ts))
        if shift_filter.ids is not None:
            ids = [int(i) for i in shift_filter.ids]
            if not ids:
                return []
            clauses.append(f"id IN ({in_clause(ids)})")
            params.extend(ids)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM shifts WHERE {where} ORDER BY id", tuple(params))
            return [_to_record(r) for r in fetchall(cur)]

    def delete(self, *, shift_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM shifts WHERE id=%s", (int(shift_id),))
            return cur.rowcount > 0
