from __future__ import annotations

from typing import Protocol, Sequence

from .model import AuditLogEntry


class AuditRepository(Protocol):
    def append(self, *, user_id: str, guild_id: str, actor_id: str, action: str, data: str, ts: int) -> int:
        raise NotImplementedError

    def list_for_user(self, *, user_id: str, guild_id: str, limit: int) -> Sequence[AuditLogEntry]:
        """Most recent first."""

        raise NotImplementedError
