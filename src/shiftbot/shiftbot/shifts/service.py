from __future__ import annotations

from typing import Optional, Sequence

import structlog

from ..audit.service import AuditLog
from ..common.datetime_utils import Clock
from ..core.constants import DEFAULT_SHIFT_TYPE, MAX_SHIFT_TYPE_LENGTH
from ..core.enums import AuditAction, ShiftStatus
from ..core.exceptions import ForbiddenError, InvalidStateError, NotFoundError, ValidationError
from ..effects.model import BulkOutcome, Effect, Outcome
from .model import ShiftFilter, ShiftRecord
from .repository import ShiftRepository

logger = structlog.get_logger("shiftbot.shifts")


class ShiftLedger:
    """Owns shift records and the active/paused/ended state machine.

    Every transition goes through a conditional update in the repository, so
    concurrent actions on the same shift cannot apply twice. Audit entries are
    appended after a transition succeeds; role changes are returned as effects.
    """

    def __init__(self, shifts: ShiftRepository, audit: AuditLog, clock: Clock):
        self._shifts = shifts
        self._audit = audit
        self._clock = clock

    # -------- reads --------
    def get_by_id(self, shift_id: int) -> Optional[ShiftRecord]:
        return self._shifts.get_by_id(int(shift_id))

    def get_active_or_paused(
        self,
        *,
        user_id: str,
        guild_id: str,
        statuses: Optional[Sequence[ShiftStatus]] = None,
    ) -> Optional[ShiftRecord]:
        """Newest open shift of the user; ``statuses`` narrows it to one state."""
        return self._shifts.get_open_for_user(user_id=str(user_id), guild_id=str(guild_id), statuses=statuses)

    # -------- transitions --------
    def start(self, *, user_id: str, guild_id: str, shift_type: Optional[str] = None) -> Outcome[ShiftRecord]:
        shift_type = (shift_type or "").strip() or DEFAULT_SHIFT_TYPE
        if len(shift_type) > MAX_SHIFT_TYPE_LENGTH:
            raise ValidationError(f"Shift type must be at most {MAX_SHIFT_TYPE_LENGTH} characters")
        shift_id = self._shifts.create(
            user_id=str(user_id),
            guild_id=str(guild_id),
            shift_type=shift_type,
            start_ts=self._clock.now(),
        )
        self._audit.append(
            user_id=user_id,
            guild_id=guild_id,
            actor_id=user_id,
            action=AuditAction.SHIFT_START.value,
            data=f"id={shift_id},type={shift_type}",
        )
        logger.info("shift_started", shift_id=shift_id, user_id=str(user_id), guild_id=str(guild_id))
        return Outcome(self._reload(shift_id), (Effect.grant_role(guild_id=guild_id, user_id=user_id),))

    def pause(self, *, shift_id: int, caller_id: str, caller_is_admin: bool = False) -> Outcome[ShiftRecord]:
        row = self._require(shift_id)
        self._authorize(row, caller_id, caller_is_admin)
        if row.status != ShiftStatus.ACTIVE:
            raise InvalidStateError(f"Shift #{row.shift_id} is {row.status.value}, only active shifts can be paused")

        if not self._shifts.mark_paused(shift_id=row.shift_id, pause_ts=self._clock.now()):
            self._raise_lost_race(row.shift_id, "paused")

        self._audit.append(
            user_id=row.user_id,
            guild_id=row.guild_id,
            actor_id=caller_id,
            action=AuditAction.SHIFT_PAUSE.value,
            data=f"id={row.shift_id}",
        )
        return Outcome(self._reload(row.shift_id))

    def resume(self, *, shift_id: int, caller_id: str, caller_is_admin: bool = False) -> Outcome[ShiftRecord]:
        row = self._require(shift_id)
        self._authorize(row, caller_id, caller_is_admin)
        if row.status != ShiftStatus.PAUSED:
            raise InvalidStateError(f"Shift #{row.shift_id} is {row.status.value}, only paused shifts can be resumed")

        if not self._shifts.mark_resumed(shift_id=row.shift_id, resume_ts=self._clock.now()):
            self._raise_lost_race(row.shift_id, "resumed")

        self._audit.append(
            user_id=row.user_id,
            guild_id=row.guild_id,
            actor_id=caller_id,
            action=AuditAction.SHIFT_RESUME.value,
            data=f"id={row.shift_id}",
        )
        return Outcome(self._reload(row.shift_id))

    def end(
        self,
        *,
        shift_id: int,
        caller_id: str,
        caller_is_admin: bool = False,
        force: bool = False,
    ) -> Outcome[ShiftRecord]:
        row = self._require(shift_id)
        if force and not caller_is_admin:
            raise ForbiddenError("Only admins can force-end a shift")
        self._authorize(row, caller_id, caller_is_admin)
        if not row.is_open:
            raise InvalidStateError(f"Shift #{row.shift_id} has already ended")

        if not self._shifts.mark_ended(shift_id=row.shift_id, end_ts=self._clock.now()):
            self._raise_lost_race(row.shift_id, "ended")

        ended = self._reload(row.shift_id)
        action = AuditAction.SHIFT_FORCE_END if force else AuditAction.SHIFT_END
        self._audit.append(
            user_id=row.user_id,
            guild_id=row.guild_id,
            actor_id=caller_id,
            action=action.value,
            data=f"id={row.shift_id},total={ended.total_seconds}",
        )
        logger.info("shift_ended", shift_id=row.shift_id, total_seconds=ended.total_seconds, force=force)
        return Outcome(ended, (Effect.revoke_role(guild_id=row.guild_id, user_id=row.user_id),))

    # -------- admin bulk operations --------
    def bulk_end(self, *, shift_filter: ShiftFilter, actor_id: str, caller_is_admin: bool) -> BulkOutcome[ShiftRecord]:
        if not caller_is_admin:
            raise ForbiddenError("Only admins can bulk-end shifts")

        rows = self._shifts.list_matching(shift_filter=shift_filter, statuses=ShiftStatus.open_states())
        ended: list[ShiftRecord] = []
        effects: list[Effect] = []
        for row in rows:
            # Each row is ended on its own; one that was closed concurrently is skipped.
            if not self._shifts.mark_ended(shift_id=row.shift_id, end_ts=self._clock.now()):
                logger.info("bulk_end_skipped", shift_id=row.shift_id)
                continue
            record = self._shifts.get_by_id(row.shift_id)
            if record is None:
                # Deleted right after ending; report the listed row instead.
                logger.warning("bulk_end_reread_missing", shift_id=row.shift_id)
                record = row
            self._audit.append(
                user_id=row.user_id,
                guild_id=row.guild_id,
                actor_id=actor_id,
                action=AuditAction.SHIFT_BULK_END.value,
                data=f"id={row.shift_id},total={record.total_seconds}",
            )
            ended.append(record)
            effects.append(Effect.revoke_role(guild_id=row.guild_id, user_id=row.user_id))

        logger.info("shifts_bulk_ended", guild_id=shift_filter.guild_id, count=len(ended), actor_id=str(actor_id))
        return BulkOutcome(tuple(ended), tuple(effects))

    def bulk_delete(
        self,
        *,
        shift_filter: ShiftFilter,
        actor_id: str,
        caller_is_admin: bool,
    ) -> BulkOutcome[ShiftRecord]:
        if not caller_is_admin:
            raise ForbiddenError("Only admins can bulk-delete shifts")
        if not shift_filter.is_narrowed:
            raise ValidationError("Bulk delete needs at least one filter (user, before or ids)")
        if shift_filter.ids is not None and not list(shift_filter.ids):
            raise ValidationError("No valid ids given")

        rows = self._shifts.list_matching(shift_filter=shift_filter)
        deleted: list[ShiftRecord] = []
        for row in rows:
            if not self._shifts.delete(shift_id=row.shift_id):
                logger.info("bulk_delete_skipped", shift_id=row.shift_id)
                continue
            self._audit.append(
                user_id=row.user_id,
                guild_id=row.guild_id,
                actor_id=actor_id,
                action=AuditAction.SHIFT_BULK_DELETE.value,
                data=f"id={row.shift_id}",
            )
            deleted.append(row)

        logger.info("shifts_bulk_deleted", guild_id=shift_filter.guild_id, count=len(deleted), actor_id=str(actor_id))
        return BulkOutcome(tuple(deleted))

    # -------- helpers --------
    def _require(self, shift_id: int) -> ShiftRecord:
        row = self._shifts.get_by_id(int(shift_id))
        if not row:
            raise NotFoundError(f"Shift #{shift_id} not found")
        return row

    def _reload(self, shift_id: int) -> ShiftRecord:
        return self._require(shift_id)

    @staticmethod
    def _authorize(row: ShiftRecord, caller_id: str, caller_is_admin: bool) -> None:
        if row.user_id != str(caller_id) and not caller_is_admin:
            raise ForbiddenError("You can only manage your own shifts")

    def _raise_lost_race(self, shift_id: int, verb: str) -> None:
        current = self._require(shift_id)
        raise InvalidStateError(f"Shift #{shift_id} could not be {verb}, it is now {current.status.value}")
