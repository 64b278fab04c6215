from __future__ import annotations

import threading
from dataclasses import replace
from typing import Optional, Sequence

from ..core.enums import ShiftStatus
from .model import ShiftFilter, ShiftRecord
from .repository import ShiftRepository


class InMemoryShiftRepository(ShiftRepository):
    """Process-local store; every check-and-set runs under one lock."""

    def __init__(self):
        self._lock = threading.Lock()
        self._rows: dict[int, ShiftRecord] = {}
        self._next_id = 1

    def create(self, *, user_id: str, guild_id: str, shift_type: str, start_ts: int) -> int:
        with self._lock:
            shift_id = self._next_id
            self._next_id += 1
            self._rows[shift_id] = ShiftRecord(
                shift_id=shift_id,
                user_id=str(user_id),
                guild_id=str(guild_id),
                shift_type=shift_type,
                status=ShiftStatus.ACTIVE,
                start_ts=int(start_ts),
            )
            return shift_id

    def get_by_id(self, shift_id: int) -> Optional[ShiftRecord]:
        with self._lock:
            return self._rows.get(int(shift_id))

    def get_open_for_user(
        self,
        *,
        user_id: str,
        guild_id: str,
        statuses: Optional[Sequence[ShiftStatus]] = None,
    ) -> Optional[ShiftRecord]:
        wanted = set(statuses or ShiftStatus.open_states())
        with self._lock:
            rows = [
                r
                for r in self._rows.values()
                if r.user_id == str(user_id) and r.guild_id == str(guild_id) and r.status in wanted
            ]
        return max(rows, key=lambda r: r.shift_id) if rows else None

    def mark_paused(self, *, shift_id: int, pause_ts: int) -> bool:
        with self._lock:
            row = self._rows.get(int(shift_id))
            if not row or row.status != ShiftStatus.ACTIVE:
                return False
            self._rows[row.shift_id] = replace(
                row,
                total_seconds=row.total_seconds + max(0, int(pause_ts) - row.start_ts),
                pause_ts=int(pause_ts),
                status=ShiftStatus.PAUSED,
            )
            return True

    def mark_resumed(self, *, shift_id: int, resume_ts: int) -> bool:
        with self._lock:
            row = self._rows.get(int(shift_id))
            if not row or row.status != ShiftStatus.PAUSED:
                return False
            self._rows[row.shift_id] = replace(
                row,
                resume_ts=int(resume_ts),
                start_ts=int(resume_ts),
                status=ShiftStatus.ACTIVE,
            )
            return True

    def mark_ended(self, *, shift_id: int, end_ts: int) -> bool:
        with self._lock:
            row = self._rows.get(int(shift_id))
            if not row or not row.is_open:
                return False
            total = row.total_seconds
            if row.status == ShiftStatus.ACTIVE:
                total += max(0, int(end_ts) - row.start_ts)
            self._rows[row.shift_id] = replace(
                row,
                total_seconds=total,
                end_ts=int(end_ts),
                status=ShiftStatus.ENDED,
            )
            return True

    def list_matching(
        self,
        *,
        shift_filter: ShiftFilter,
        statuses: Optional[Sequence[ShiftStatus]] = None,
    ) -> Sequence[ShiftRecord]:
        with self._lock:
            rows = [r for r in self._rows.values() if shift_filter.matches(r)]
        if statuses:
            rows = [r for r in rows if r.status in set(statuses)]
        return sorted(rows, key=lambda r: r.shift_id)

    def delete(self, *, shift_id: int) -> bool:
        with self._lock:
            return self._rows.pop(int(shift_id), None) is not None
