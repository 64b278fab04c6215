from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AuditLogEntry:
    """Thực thể miền (domain): Một dòng nhật ký thao tác (append-only)."""

    entry_id: int
    user_id: str
    guild_id: str
    actor_id: str
    action: str
    data: str
    ts: int
