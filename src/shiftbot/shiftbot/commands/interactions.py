"""Translate platform interaction payloads into :class:`Action` values.

All parsing and validation of user input happens here, so the facade only
ever sees well-formed actions.
"""

from __future__ import annotations

from typing import Any, Optional

from ..common.datetime_utils import parse_before_date
from ..common.validators import parse_id_list
from ..core.enums import LoaStatus
from ..core.exceptions import ValidationError
from .authorization import is_admin
from .model import Action, ActionKind, ActionSource, BulkFilter

PING = 1
APPLICATION_COMMAND = 2
MESSAGE_COMPONENT = 3

_SUBCOMMAND_TYPES = {1, 2}

_COMMANDS: dict[tuple[str, str], ActionKind] = {
    ("shift", "start"): ActionKind.SHIFT_START,
    ("shift", "pause"): ActionKind.SHIFT_PAUSE,
    ("shift", "resume"): ActionKind.SHIFT_RESUME,
    ("shift", "end"): ActionKind.SHIFT_END,
    ("shift", "logs"): ActionKind.SHIFT_LOGS,
    ("shift-manage", "bulk-end"): ActionKind.SHIFT_BULK_END,
    ("shift-manage", "bulk-delete"): ActionKind.SHIFT_BULK_DELETE,
    ("loa", "request"): ActionKind.LOA_REQUEST,
    ("loa", "list"): ActionKind.LOA_LIST,
    ("loa", "status"): ActionKind.LOA_STATUS,
    ("loa-manage", "approve"): ActionKind.LOA_APPROVE,
    ("loa-manage", "deny"): ActionKind.LOA_DENY,
    ("loa-manage", "list"): ActionKind.LOA_LIST_ALL,
}

_BUTTON_VERBS: dict[str, ActionKind] = {
    "start": ActionKind.SHIFT_START,
    "pause": ActionKind.SHIFT_PAUSE,
    "resume": ActionKind.SHIFT_RESUME,
    "end": ActionKind.SHIFT_END,
    "forceend": ActionKind.SHIFT_FORCE_END,
}


def parse_button_custom_id(custom_id: str) -> tuple[ActionKind, Optional[int]]:
    """``shift:<verb>:<id>`` -> (kind, shift id); ``shift:start:new`` has no id."""
    parts = (custom_id or "").split(":")
    if len(parts) != 3 or parts[0] != "shift":
        raise ValidationError("Unknown button action")

    _, verb, raw_id = parts
    kind = _BUTTON_VERBS.get(verb)
    if kind is None:
        raise ValidationError("Unknown button action")
    if kind == ActionKind.SHIFT_START:
        return kind, None
    if not raw_id.isdigit() or int(raw_id) <= 0:
        raise ValidationError("Invalid shift id on button")
    return kind, int(raw_id)


def _caller(payload: dict[str, Any]) -> tuple[str, list[str], Any]:
    member = payload.get("member") or {}
    user = member.get("user") or payload.get("user") or {}
    return str(user.get("id") or ""), list(member.get("roles") or []), member.get("permissions")


def _options(data: dict[str, Any]) -> tuple[Optional[str], dict[str, Any]]:
    subcommand: Optional[str] = None
    values: dict[str, Any] = {}
    for opt in data.get("options") or []:
        if opt.get("type") in _SUBCOMMAND_TYPES:
            subcommand = opt.get("name")
            for inner in opt.get("options") or []:
                values[inner.get("name")] = inner.get("value")
        else:
            values[opt.get("name")] = opt.get("value")
    return subcommand, values


def _optional_int(value: Any, field_name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _bulk_filter(values: dict[str, Any]) -> BulkFilter:
    before = _optional_str(values.get("before"))
    ids = _optional_str(values.get("ids"))
    return BulkFilter(
        user_id=_optional_str(values.get("user")),
        before_ts=parse_before_date(before) if before else None,
        ids=parse_id_list(ids) if ids else None,
    )


def parse_interaction(payload: dict[str, Any], *, admin_role_id: Optional[str] = None) -> Action:
    """Build the action for a slash command or button interaction."""
    actor_id, roles, permissions = _caller(payload)
    guild_id = str(payload.get("guild_id") or "")
    admin = is_admin(role_ids=roles, permissions=permissions, admin_role_id=admin_role_id)
    data = payload.get("data") or {}

    if payload.get("type") == MESSAGE_COMPONENT:
        kind, shift_id = parse_button_custom_id(str(data.get("custom_id") or ""))
        return Action(
            kind=kind,
            actor_id=actor_id,
            guild_id=guild_id,
            caller_is_admin=admin,
            source=ActionSource.BUTTON,
            shift_id=shift_id,
        )

    if payload.get("type") != APPLICATION_COMMAND:
        raise ValidationError("Unsupported interaction")

    subcommand, values = _options(data)
    kind = _COMMANDS.get((str(data.get("name") or ""), str(subcommand or "")))
    if kind is None:
        raise ValidationError("Unknown command")

    status = _optional_str(values.get("status"))
    if status is not None:
        try:
            loa_status = LoaStatus(status.lower())
        except ValueError:
            raise ValidationError("Unknown LoA status")
    else:
        loa_status = None

    return Action(
        kind=kind,
        actor_id=actor_id,
        guild_id=guild_id,
        caller_is_admin=admin,
        source=ActionSource.COMMAND,
        target_user_id=_optional_str(values.get("user")) if kind == ActionKind.SHIFT_LOGS else None,
        loa_id=_optional_int(values.get("id"), "id"),
        shift_type=_optional_str(values.get("type")),
        duration_expr=_optional_str(values.get("duration")),
        reason=_optional_str(values.get("reason")),
        note=_optional_str(values.get("note")),
        limit=_optional_int(values.get("limit"), "limit"),
        loa_status=loa_status,
        bulk_filter=_bulk_filter(values) if kind in (ActionKind.SHIFT_BULK_END, ActionKind.SHIFT_BULK_DELETE) else None,
    )
