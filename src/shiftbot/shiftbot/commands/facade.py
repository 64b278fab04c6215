from __future__ import annotations

from typing import Callable, Iterable

import structlog

from ..audit.service import AuditLog
from ..core.constants import GENERIC_FAILURE_MESSAGE
from ..core.enums import ShiftStatus
from ..core.exceptions import DomainError, InvalidStateError, NotFoundError
from ..effects.model import Effect
from ..effects.runner import EffectRunner
from ..loa.service import LoaLedger
from ..shifts.model import ShiftFilter, ShiftRecord
from ..shifts.service import ShiftLedger
from .model import ADMIN_ONLY_ACTIONS, Action, ActionKind, ActionResult, ActionSource
from .rendering import audit_lines, loa_embed, loa_lines, shift_deleted_embed, shift_embed

logger = structlog.get_logger("shiftbot.commands")

Handled = tuple[ActionResult, list[Effect]]


class CommandFacade:
    """Entry point for every action request.

    Checks authorization, calls the ledger, then runs the effects the ledger
    returned (plus audit-channel broadcasts). Domain errors become caller-facing
    messages; anything unexpected becomes a generic failure so one bad request
    never takes the worker down.
    """

    def __init__(
        self,
        shifts: ShiftLedger,
        loas: LoaLedger,
        audit: AuditLog,
        effects: EffectRunner,
        *,
        broadcast: bool = False,
    ):
        self._shifts = shifts
        self._loas = loas
        self._audit = audit
        self._effects = effects
        self._broadcast = broadcast
        self._handlers: dict[ActionKind, Callable[[Action], Handled]] = {
            ActionKind.SHIFT_START: self._shift_start,
            ActionKind.SHIFT_PAUSE: self._shift_pause,
            ActionKind.SHIFT_RESUME: self._shift_resume,
            ActionKind.SHIFT_END: self._shift_end,
            ActionKind.SHIFT_FORCE_END: self._shift_force_end,
            ActionKind.SHIFT_BULK_END: self._shift_bulk_end,
            ActionKind.SHIFT_BULK_DELETE: self._shift_bulk_delete,
            ActionKind.SHIFT_LOGS: self._shift_logs,
            ActionKind.LOA_REQUEST: self._loa_request,
            ActionKind.LOA_LIST: self._loa_list,
            ActionKind.LOA_STATUS: self._loa_status,
            ActionKind.LOA_APPROVE: self._loa_approve,
            ActionKind.LOA_DENY: self._loa_deny,
            ActionKind.LOA_LIST_ALL: self._loa_list_all,
        }

    def handle(self, action: Action) -> ActionResult:
        log = logger.bind(action=action.kind.value, actor_id=action.actor_id, guild_id=action.guild_id)

        if action.kind in ADMIN_ONLY_ACTIONS and not action.caller_is_admin:
            log.info("action_rejected", reason="admin_only")
            return ActionResult.failure("Only admins can use this action.")

        try:
            result, effects = self._handlers[action.kind](action)
        except DomainError as err:
            log.info("action_failed", error_type=type(err).__name__, error=str(err))
            return ActionResult.failure(str(err))
        except Exception:
            log.exception("action_crashed")
            return ActionResult.failure(GENERIC_FAILURE_MESSAGE)

        self._run_effects(effects)
        return result

    def _run_effects(self, effects: Iterable[Effect]) -> None:
        try:
            self._effects.dispatch(effects)
        except Exception as exc:
            logger.warning("effects_dispatch_failed", error=str(exc))

    # -------- shift handlers --------
    def _own_shift_in(self, action: Action, statuses: tuple[ShiftStatus, ...], missing: str) -> ShiftRecord:
        row = self._shifts.get_active_or_paused(user_id=action.actor_id, guild_id=action.guild_id, statuses=statuses)
        if not row:
            raise NotFoundError(missing)
        return row

    def _shift_result(self, action: Action, row: ShiftRecord, label: str, effects: Iterable[Effect]) -> Handled:
        out = list(effects)
        if self._broadcast:
            out.append(Effect.broadcast(guild_id=row.guild_id, embed=shift_embed(row, actor_id=action.actor_id, label=label)))
        result = ActionResult(
            ok=True,
            shift=row,
            label=label,
            actor_id=action.actor_id,
            ephemeral=False,
            admin_controls=action.caller_is_admin,
        )
        return result, out

    def _shift_start(self, action: Action) -> Handled:
        # Button starts always open a new shift; only the command path checks
        # for an existing open one.
        if action.source == ActionSource.COMMAND:
            existing = self._shifts.get_active_or_paused(user_id=action.actor_id, guild_id=action.guild_id)
            if existing:
                raise InvalidStateError(f"You already have an open shift (#{existing.shift_id}, {existing.status.value}).")

        outcome = self._shifts.start(user_id=action.actor_id, guild_id=action.guild_id, shift_type=action.shift_type)
        return self._shift_result(action, outcome.record, "Started by", outcome.effects)

    def _shift_pause(self, action: Action) -> Handled:
        shift_id = action.shift_id or self._own_shift_in(action, (ShiftStatus.ACTIVE,), "No active shift found.").shift_id
        outcome = self._shifts.pause(shift_id=shift_id, caller_id=action.actor_id, caller_is_admin=action.caller_is_admin)
        return self._shift_result(action, outcome.record, "Paused by", outcome.effects)

    def _shift_resume(self, action: Action) -> Handled:
        shift_id = action.shift_id or self._own_shift_in(action, (ShiftStatus.PAUSED,), "No paused shift found.").shift_id
        outcome = self._shifts.resume(shift_id=shift_id, caller_id=action.actor_id, caller_is_admin=action.caller_is_admin)
        return self._shift_result(action, outcome.record, "Resumed by", outcome.effects)

    def _shift_end(self, action: Action) -> Handled:
        if action.shift_id:
            shift_id = action.shift_id
        else:
            shift_id = self._own_shift_in(action, ShiftStatus.open_states(), "No active or paused shift found.").shift_id
        outcome = self._shifts.end(shift_id=shift_id, caller_id=action.actor_id, caller_is_admin=action.caller_is_admin)
        return self._shift_result(action, outcome.record, "Ended by", outcome.effects)

    def _shift_force_end(self, action: Action) -> Handled:
        outcome = self._shifts.end(
            shift_id=int(action.shift_id),
            caller_id=action.actor_id,
            caller_is_admin=action.caller_is_admin,
            force=True,
        )
        return self._shift_result(action, outcome.record, "Force ended by", outcome.effects)

    def _bulk_filter(self, action: Action) -> ShiftFilter:
        f = action.bulk_filter
        if f is None:
            return ShiftFilter(guild_id=action.guild_id)
        return ShiftFilter(
            guild_id=action.guild_id,
            user_id=f.user_id,
            before_ts=f.before_ts,
            ids=list(f.ids) if f.ids is not None else None,
        )

    def _shift_bulk_end(self, action: Action) -> Handled:
        outcome = self._shifts.bulk_end(
            shift_filter=self._bulk_filter(action),
            actor_id=action.actor_id,
            caller_is_admin=action.caller_is_admin,
        )
        effects = list(outcome.effects)
        if self._broadcast:
            for row in outcome.records:
                embed = shift_embed(row, actor_id=action.actor_id, label="Ended by (admin bulk)")
                effects.append(Effect.broadcast(guild_id=row.guild_id, embed=embed))
        message = f"Ended {outcome.count} shifts." if outcome.count else "No shifts matched the filter."
        return ActionResult(ok=True, message=message, count=outcome.count), effects

    def _shift_bulk_delete(self, action: Action) -> Handled:
        outcome = self._shifts.bulk_delete(
            shift_filter=self._bulk_filter(action),
            actor_id=action.actor_id,
            caller_is_admin=action.caller_is_admin,
        )
        effects: list[Effect] = []
        if self._broadcast:
            for row in outcome.records:
                embed = shift_deleted_embed(row, actor_id=action.actor_id)
                effects.append(Effect.broadcast(guild_id=row.guild_id, embed=embed))
        message = f"Deleted {outcome.count} shifts." if outcome.count else "No shifts found to delete."
        return ActionResult(ok=True, message=message, count=outcome.count), effects

    def _shift_logs(self, action: Action) -> Handled:
        user_id = action.actor_id
        if action.target_user_id and action.caller_is_admin:
            user_id = action.target_user_id
        entries = self._audit.query(user_id=user_id, guild_id=action.guild_id, limit=action.limit)
        if not entries:
            return ActionResult(ok=True, message="No logs found."), []
        return ActionResult(ok=True, lines=audit_lines(entries), count=len(entries)), []

    # -------- LoA handlers --------
    def _loa_request(self, action: Action) -> Handled:
        outcome = self._loas.request(
            user_id=action.actor_id,
            guild_id=action.guild_id,
            duration_expr=action.duration_expr or "",
            reason=action.reason,
        )
        return self._loa_result(action, outcome.record, "Requested by", outcome.effects)

    def _loa_list(self, action: Action) -> Handled:
        rows = self._loas.list_for_user(user_id=action.actor_id, guild_id=action.guild_id, limit=action.limit)
        if not rows:
            return ActionResult(ok=True, message="No LoA requests found."), []
        return ActionResult(ok=True, lines=loa_lines(rows), count=len(rows)), []

    def _loa_status(self, action: Action) -> Handled:
        row = self._loas.latest_status(user_id=action.actor_id, guild_id=action.guild_id)
        if not row:
            return ActionResult(ok=True, message="No LoA found."), []
        return ActionResult(ok=True, loa=row), []

    def _loa_approve(self, action: Action) -> Handled:
        outcome = self._loas.approve(
            loa_id=int(action.loa_id),
            actor_id=action.actor_id,
            caller_is_admin=action.caller_is_admin,
            note=action.note or "",
        )
        return self._loa_result(action, outcome.record, "Approved by", outcome.effects)

    def _loa_deny(self, action: Action) -> Handled:
        outcome = self._loas.deny(
            loa_id=int(action.loa_id),
            actor_id=action.actor_id,
            caller_is_admin=action.caller_is_admin,
            note=action.note or "",
        )
        return self._loa_result(action, outcome.record, "Denied by", outcome.effects)

    def _loa_list_all(self, action: Action) -> Handled:
        rows = self._loas.list_for_guild(
            guild_id=action.guild_id,
            caller_is_admin=action.caller_is_admin,
            status=action.loa_status,
            limit=action.limit,
        )
        if not rows:
            return ActionResult(ok=True, message="No LoA requests."), []
        return ActionResult(ok=True, lines=loa_lines(rows, with_user=True), count=len(rows)), []

    def _loa_result(self, action: Action, row, label: str, effects: Iterable[Effect]) -> Handled:
        out = list(effects)
        if self._broadcast:
            out.append(Effect.broadcast(guild_id=row.guild_id, embed=loa_embed(row, actor_id=action.actor_id, label=label)))
        return ActionResult(ok=True, loa=row, label=label, actor_id=action.actor_id), out
