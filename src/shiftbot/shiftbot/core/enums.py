from __future__ import annotations

from enum import Enum


class ShiftStatus(str, Enum):
    """Trạng thái của một ca làm (state machine)."""

    ACTIVE = "active"
    PAUSED = "paused"
    ENDED = "ended"

    @classmethod
    def open_states(cls) -> tuple["ShiftStatus", ...]:
        return (cls.ACTIVE, cls.PAUSED)


class LoaStatus(str, Enum):
    """Trạng thái luồng duyệt đơn nghỉ (LoA)."""

    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


class AuditAction(str, Enum):
    SHIFT_START = "shift_start"
    SHIFT_PAUSE = "shift_pause"
    SHIFT_RESUME = "shift_resume"
    SHIFT_END = "shift_end"
    SHIFT_FORCE_END = "shift_forceend"
    SHIFT_BULK_END = "shift_bulk_end"
    SHIFT_BULK_DELETE = "shift_bulk_delete"
    LOA_REQUEST = "loa_request"
    LOA_APPROVE = "loa_approve"
    LOA_DENY = "loa_deny"
