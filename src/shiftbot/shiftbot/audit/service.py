from __future__ import annotations

from typing import Optional, Sequence

import structlog

from ..common.datetime_utils import Clock
from ..common.validators import clamp_limit
from ..core.constants import DEFAULT_LOG_LIMIT, MAX_LOG_LIMIT
from .model import AuditLogEntry
from .repository import AuditRepository

logger = structlog.get_logger("shiftbot.audit")


class AuditLog:
    """Append-only sink shared by both ledgers.

    ``append`` never raises: a failed write is reported as a warning and the
    primary operation carries on.
    """

    def __init__(self, repo: AuditRepository, clock: Clock):
        self._repo = repo
        self._clock = clock

    def append(self, *, user_id: str, guild_id: str, actor_id: str, action: str, data: str = "") -> Optional[int]:
        try:
            return self._repo.append(
                user_id=str(user_id),
                guild_id=str(guild_id),
                actor_id=str(actor_id),
                action=action,
                data=data,
                ts=self._clock.now(),
            )
        except Exception as exc:
            logger.warning("audit_append_failed", action=action, user_id=str(user_id), error=str(exc))
            return None

    def query(self, *, user_id: str, guild_id: str, limit: Optional[int] = None) -> Sequence[AuditLogEntry]:
        limit = clamp_limit(limit, default=DEFAULT_LOG_LIMIT, maximum=MAX_LOG_LIMIT)
        return self._repo.list_for_user(user_id=str(user_id), guild_id=str(guild_id), limit=limit)
