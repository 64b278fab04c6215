from __future__ import annotations

import re
from typing import Optional, Sequence

import structlog

from ..audit.service import AuditLog
from ..common.datetime_utils import Clock
from ..common.validators import clamp_limit
from ..core.constants import (
    DEFAULT_LOA_LIMIT,
    DEFAULT_LOA_REASON,
    MAX_GUILD_LOA_LIMIT,
    MAX_USER_LOA_LIMIT,
    SECONDS_PER_DAY,
    SECONDS_PER_WEEK,
)
from ..core.enums import AuditAction, LoaStatus
from ..core.exceptions import ForbiddenError, InvalidStateError, NotFoundError, ValidationError
from ..effects.model import Effect, Outcome
from .model import LoaRecord
from .repository import LoaRepository

logger = structlog.get_logger("shiftbot.loa")

_UNIT_DURATION = re.compile(r"^(\d+)([dw])$", re.IGNORECASE)
_LEADING_INT = re.compile(r"^([+-]?\d+)")


def parse_duration_seconds(expr: Optional[str]) -> int:
    """Turn "3d" / "2w" / "5" into seconds.

    A leading (optionally signed) integer counts as days. Anything else yields
    0, a zero-length leave range. Negative amounts raise ValidationError.
    """
    value = (expr or "").strip()
    m = _UNIT_DURATION.match(value)
    if m:
        amount = int(m.group(1))
        return amount * (SECONDS_PER_WEEK if m.group(2).lower() == "w" else SECONDS_PER_DAY)

    m = _LEADING_INT.match(value)
    if m:
        days = int(m.group(1))
        if days < 0:
            raise ValidationError("Duration must not be negative")
        return days * SECONDS_PER_DAY
    return 0


class LoaLedger:
    """Owns leave requests and their one-shot pending -> approved|denied flow."""

    def __init__(self, loas: LoaRepository, audit: AuditLog, clock: Clock):
        self._loas = loas
        self._audit = audit
        self._clock = clock

    def request(
        self,
        *,
        user_id: str,
        guild_id: str,
        duration_expr: str,
        reason: Optional[str] = None,
    ) -> Outcome[LoaRecord]:
        reason = (reason or "").strip() or DEFAULT_LOA_REASON
        start_ts = self._clock.now()
        end_ts = start_ts + parse_duration_seconds(duration_expr)

        loa_id = self._loas.create(
            user_id=str(user_id),
            guild_id=str(guild_id),
            start_ts=start_ts,
            end_ts=end_ts,
            reason=reason,
        )
        self._audit.append(
            user_id=user_id,
            guild_id=guild_id,
            actor_id=user_id,
            action=AuditAction.LOA_REQUEST.value,
            data=f"id={loa_id},reason={reason}",
        )
        return Outcome(self._require(loa_id))

    def approve(self, *, loa_id: int, actor_id: str, caller_is_admin: bool, note: str = "") -> Outcome[LoaRecord]:
        return self._decide(loa_id=loa_id, actor_id=actor_id, caller_is_admin=caller_is_admin, note=note, status=LoaStatus.APPROVED)

    def deny(self, *, loa_id: int, actor_id: str, caller_is_admin: bool, note: str = "") -> Outcome[LoaRecord]:
        return self._decide(loa_id=loa_id, actor_id=actor_id, caller_is_admin=caller_is_admin, note=note, status=LoaStatus.DENIED)

    def list_for_user(self, *, user_id: str, guild_id: str, limit: Optional[int] = None) -> Sequence[LoaRecord]:
        limit = clamp_limit(limit, default=DEFAULT_LOA_LIMIT, maximum=MAX_USER_LOA_LIMIT)
        return self._loas.list_for_user(user_id=str(user_id), guild_id=str(guild_id), limit=limit)

    def list_for_guild(
        self,
        *,
        guild_id: str,
        caller_is_admin: bool,
        status: Optional[LoaStatus] = None,
        limit: Optional[int] = None,
    ) -> Sequence[LoaRecord]:
        if not caller_is_admin:
            raise ForbiddenError("Only admins can list all leave requests")
        limit = clamp_limit(limit, default=DEFAULT_LOA_LIMIT, maximum=MAX_GUILD_LOA_LIMIT)
        return self._loas.list_for_guild(guild_id=str(guild_id), status=status, limit=limit)

    def latest_status(self, *, user_id: str, guild_id: str) -> Optional[LoaRecord]:
        rows = self._loas.list_for_user(user_id=str(user_id), guild_id=str(guild_id), limit=1)
        return rows[0] if rows else None

    def _decide(
        self,
        *,
        loa_id: int,
        actor_id: str,
        caller_is_admin: bool,
        note: str,
        status: LoaStatus,
    ) -> Outcome[LoaRecord]:
        if not caller_is_admin:
            raise ForbiddenError("Only admins can resolve leave requests")

        row = self._require(loa_id)
        if row.is_resolved:
            raise InvalidStateError(f"LoA #{row.loa_id} is already {row.status.value}")

        if not self._loas.decide(loa_id=row.loa_id, status=status, actor_id=str(actor_id)):
            current = self._require(row.loa_id)
            raise InvalidStateError(f"LoA #{row.loa_id} is already {current.status.value}")

        action = AuditAction.LOA_APPROVE if status == LoaStatus.APPROVED else AuditAction.LOA_DENY
        self._audit.append(
            user_id=row.user_id,
            guild_id=row.guild_id,
            actor_id=actor_id,
            action=action.value,
            data=f"id={row.loa_id},note={(note or '').strip()}",
        )
        logger.info("loa_resolved", loa_id=row.loa_id, status=status.value, actor_id=str(actor_id))

        notice = Effect.direct_message(
            guild_id=row.guild_id,
            user_id=row.user_id,
            content=f"Your LoA (ID: {row.loa_id}) has been {status.value}.",
        )
        return Outcome(self._require(row.loa_id), (notice,))

    def _require(self, loa_id: int) -> LoaRecord:
        row = self._loas.get_by_id(int(loa_id))
        if not row:
            raise NotFoundError(f"LoA #{loa_id} not found")
        return row
