"""Embeds, buttons and text listings for action results.

Payload shapes follow the platform's interaction response format; nothing
here touches the ledgers.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from ..audit.model import AuditLogEntry
from ..common.datetime_utils import format_duration, format_ts
from ..core.enums import ShiftStatus
from ..loa.model import LoaRecord
from ..shifts.model import ShiftRecord
from .model import ActionResult

EMBED_COLOR = 0x0B1020

# Interaction callback types
PONG = 1
CHANNEL_MESSAGE = 4
UPDATE_MESSAGE = 7

EPHEMERAL_FLAG = 1 << 6

# Component styles
BUTTON = 2
PRIMARY, SECONDARY, SUCCESS, DANGER = 1, 2, 3, 4


def button_custom_id(verb: str, shift_id: Optional[int]) -> str:
    return f"shift:{verb}:{shift_id if shift_id else 'new'}"


def _ts_field(ts: Optional[int]) -> str:
    return f"<t:{ts}:f>" if ts else "-"


def shift_embed(row: ShiftRecord, *, actor_id: Optional[str] = None, label: Optional[str] = None) -> dict[str, Any]:
    fields = [
        {"name": "User", "value": f"<@{row.user_id}>", "inline": True},
        {"name": "Type", "value": row.shift_type or "-", "inline": True},
        {"name": "Total", "value": format_duration(row.total_seconds), "inline": True},
        {"name": "Status", "value": row.status.value, "inline": True},
        {"name": "Start", "value": _ts_field(row.start_ts), "inline": True},
        {"name": "Last pause", "value": _ts_field(row.pause_ts), "inline": True},
        {"name": "Last resume", "value": _ts_field(row.resume_ts), "inline": True},
        {"name": "End", "value": _ts_field(row.end_ts), "inline": True},
    ]
    if actor_id and label:
        fields.append({"name": "\u200b", "value": f"{label}: <@{actor_id}> · Shift ID: #{row.shift_id}"})
    return {
        "title": "Shift",
        "color": EMBED_COLOR,
        "fields": fields,
        "footer": {"text": f"Shift ID: {row.shift_id}"},
    }


def shift_deleted_embed(row: ShiftRecord, *, actor_id: str) -> dict[str, Any]:
    return {
        "title": "Shift Deleted",
        "color": EMBED_COLOR,
        "description": f"Shift ID: {row.shift_id} of <@{row.user_id}> deleted by <@{actor_id}>",
    }


def loa_embed(row: LoaRecord, *, actor_id: Optional[str] = None, label: Optional[str] = None) -> dict[str, Any]:
    fields = [
        {"name": "ID", "value": str(row.loa_id), "inline": True},
        {"name": "User", "value": f"<@{row.user_id}>", "inline": True},
        {"name": "Status", "value": row.status.value, "inline": True},
        {"name": "Range", "value": f"<t:{row.start_ts}:d> - <t:{row.end_ts}:d>", "inline": False},
        {"name": "Reason", "value": row.reason or "-", "inline": False},
    ]
    if actor_id and label:
        fields.append({"name": "\u200b", "value": f"{label}: <@{actor_id}> · LoA ID: #{row.loa_id}"})
    return {"title": "LoA Request", "color": EMBED_COLOR, "fields": fields}


def shift_buttons(row: ShiftRecord, *, for_admin: bool = False) -> list[dict[str, Any]]:
    if row.status == ShiftStatus.ENDED:
        return start_button()

    def _button(verb: str, label: str, style: int, disabled: bool) -> dict[str, Any]:
        return {
            "type": BUTTON,
            "custom_id": button_custom_id(verb, row.shift_id),
            "label": label,
            "style": style,
            "disabled": disabled,
        }

    buttons = [
        _button("pause", "Pause", SECONDARY, row.status != ShiftStatus.ACTIVE),
        _button("resume", "Resume", PRIMARY, row.status != ShiftStatus.PAUSED),
        _button("end", "End", DANGER, not row.is_open),
    ]
    if for_admin:
        buttons.append(_button("forceend", "Force End", DANGER, False))
    return [{"type": 1, "components": buttons}]


def start_button() -> list[dict[str, Any]]:
    return [
        {
            "type": 1,
            "components": [
                {"type": BUTTON, "custom_id": button_custom_id("start", None), "label": "Start", "style": SUCCESS}
            ],
        }
    ]


def audit_lines(entries: Sequence[AuditLogEntry]) -> list[str]:
    return [f"{format_ts(e.ts)} | {e.action} | by: {e.actor_id or e.user_id} | {e.data}" for e in entries]


def loa_lines(rows: Sequence[LoaRecord], *, with_user: bool = False) -> list[str]:
    out: list[str] = []
    for r in rows:
        user = f" | U:{r.user_id}" if with_user else ""
        out.append(
            f"ID:{r.loa_id}{user} | {r.status.value} | {r.reason} | "
            f"{format_ts(r.start_ts, with_time=False)} - {format_ts(r.end_ts, with_time=False)}"
        )
    return out


def render_response(result: ActionResult, *, update: bool = False) -> dict[str, Any]:
    """Build the interaction response for ``result``.

    ``update`` edits the message the button lives on instead of replying.
    Failures are always new ephemeral replies.
    """
    data: dict[str, Any] = {}
    if result.shift is not None:
        data["embeds"] = [shift_embed(result.shift, actor_id=result.actor_id, label=result.label)]
        data["components"] = shift_buttons(result.shift, for_admin=result.admin_controls)
    elif result.loa is not None:
        data["embeds"] = [loa_embed(result.loa, actor_id=result.actor_id, label=result.label)]

    text_parts = [p for p in (result.message, "\n".join(result.lines) if result.lines else None) if p]
    if text_parts:
        data["content"] = "\n".join(text_parts)

    if update and result.ok and result.shift is not None:
        return {"type": UPDATE_MESSAGE, "data": data}

    if result.ephemeral or not result.ok:
        data["flags"] = EPHEMERAL_FLAG
    return {"type": CHANNEL_MESSAGE, "data": data}
