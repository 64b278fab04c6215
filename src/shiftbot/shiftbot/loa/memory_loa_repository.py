from __future__ import annotations

import threading
from dataclasses import replace
from typing import Optional, Sequence

from ..core.enums import LoaStatus
from .model import LoaRecord
from .repository import LoaRepository


class InMemoryLoaRepository(LoaRepository):
    def __init__(self):
        self._lock = threading.Lock()
        self._rows: dict[int, LoaRecord] = {}
        self._next_id = 1

    def create(self, *, user_id: str, guild_id: str, start_ts: int, end_ts: int, reason: str) -> int:
        with self._lock:
            loa_id = self._next_id
            self._next_id += 1
            self._rows[loa_id] = LoaRecord(
                loa_id=loa_id,
                user_id=str(user_id),
                guild_id=str(guild_id),
                start_ts=int(start_ts),
                end_ts=int(end_ts),
                reason=reason,
                status=LoaStatus.PENDING,
            )
            return loa_id

    def get_by_id(self, loa_id: int) -> Optional[LoaRecord]:
        with self._lock:
            return self._rows.get(int(loa_id))

    def decide(self, *, loa_id: int, status: LoaStatus, actor_id: str) -> bool:
        with self._lock:
            row = self._rows.get(int(loa_id))
            if not row or row.status != LoaStatus.PENDING:
                return False
            self._rows[row.loa_id] = replace(row, status=status, actor_id=str(actor_id))
            return True

    def list_for_user(self, *, user_id: str, guild_id: str, limit: int) -> Sequence[LoaRecord]:
        with self._lock:
            rows = [r for r in self._rows.values() if r.user_id == str(user_id) and r.guild_id == str(guild_id)]
        rows.sort(key=lambda r: r.loa_id, reverse=True)
        return rows[: int(limit)]

    def list_for_guild(
        self,
        *,
        guild_id: str,
        status: Optional[LoaStatus] = None,
        limit: int = 50,
    ) -> Sequence[LoaRecord]:
        with self._lock:
            rows = [r for r in self._rows.values() if r.guild_id == str(guild_id)]
        if status is not None:
            rows = [r for r in rows if r.status == status]
        rows.sort(key=lambda r: r.loa_id, reverse=True)
        return rows[: int(limit)]
