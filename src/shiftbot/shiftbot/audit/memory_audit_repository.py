from __future__ import annotations

import threading
from typing import Sequence

from .model import AuditLogEntry
from .repository import AuditRepository


class InMemoryAuditRepository(AuditRepository):
    def __init__(self):
        self._lock = threading.Lock()
        self._entries: list[AuditLogEntry] = []
        self._next_id = 1

    def append(self, *, user_id: str, guild_id: str, actor_id: str, action: str, data: str, ts: int) -> int:
        with self._lock:
            entry_id = self._next_id
            self._next_id += 1
            self._entries.append(
                AuditLogEntry(
                    entry_id=entry_id,
                    user_id=str(user_id),
                    guild_id=str(guild_id),
                    actor_id=str(actor_id),
                    action=action,
                    data=data,
                    ts=int(ts),
                )
            )
            return entry_id

    def list_for_user(self, *, user_id: str, guild_id: str, limit: int) -> Sequence[AuditLogEntry]:
        with self._lock:
            items = [e for e in self._entries if e.user_id == str(user_id) and e.guild_id == str(guild_id)]
        items.sort(key=lambda e: (e.ts, e.entry_id), reverse=True)
        return items[: int(limit)]
