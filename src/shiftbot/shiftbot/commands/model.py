from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

from ..core.enums import LoaStatus
from ..core.exceptions import ValidationError
from ..loa.model import LoaRecord
from ..shifts.model import ShiftRecord


class ActionKind(str, Enum):
    SHIFT_START = "shift.start"
    SHIFT_PAUSE = "shift.pause"
    SHIFT_RESUME = "shift.resume"
    SHIFT_END = "shift.end"
    SHIFT_FORCE_END = "shift.forceEnd"
    SHIFT_BULK_END = "shift.bulkEnd"
    SHIFT_BULK_DELETE = "shift.bulkDelete"
    SHIFT_LOGS = "shift.logs"
    LOA_REQUEST = "loa.request"
    LOA_LIST = "loa.list"
    LOA_STATUS = "loa.status"
    LOA_APPROVE = "loa.approve"
    LOA_DENY = "loa.deny"
    LOA_LIST_ALL = "loa.listAll"


ADMIN_ONLY_ACTIONS = frozenset(
    {
        ActionKind.SHIFT_FORCE_END,
        ActionKind.SHIFT_BULK_END,
        ActionKind.SHIFT_BULK_DELETE,
        ActionKind.LOA_APPROVE,
        ActionKind.LOA_DENY,
        ActionKind.LOA_LIST_ALL,
    }
)


class ActionSource(str, Enum):
    COMMAND = "command"
    BUTTON = "button"


@dataclass(frozen=True)
class BulkFilter:
    user_id: Optional[str] = None
    before_ts: Optional[int] = None
    ids: Optional[Sequence[int]] = None


@dataclass(frozen=True)
class Action:
    """A validated action request coming from the interaction surface."""

    kind: ActionKind
    actor_id: str
    guild_id: str
    caller_is_admin: bool = False
    source: ActionSource = ActionSource.COMMAND
    target_user_id: Optional[str] = None
    shift_id: Optional[int] = None
    loa_id: Optional[int] = None
    shift_type: Optional[str] = None
    duration_expr: Optional[str] = None
    reason: Optional[str] = None
    note: Optional[str] = None
    limit: Optional[int] = None
    loa_status: Optional[LoaStatus] = None
    bulk_filter: Optional[BulkFilter] = None

    def __post_init__(self):
        if not str(self.actor_id or "").strip():
            raise ValidationError("Missing actor")
        if not str(self.guild_id or "").strip():
            raise ValidationError("This action only works inside a server")
        if self.kind == ActionKind.SHIFT_FORCE_END and self.shift_id is None:
            raise ValidationError("Force end needs a shift id")
        if self.kind in (ActionKind.LOA_APPROVE, ActionKind.LOA_DENY) and self.loa_id is None:
            raise ValidationError("An LoA id is required")
        if self.kind == ActionKind.LOA_REQUEST and not (self.duration_expr or "").strip():
            raise ValidationError("A duration is required, e.g. 3d or 2w")
        for name in ("shift_id", "loa_id"):
            value = getattr(self, name)
            if value is not None and int(value) <= 0:
                raise ValidationError(f"Invalid {name.replace('_', ' ')}")


@dataclass(frozen=True)
class ActionResult:
    ok: bool
    message: Optional[str] = None
    shift: Optional[ShiftRecord] = None
    loa: Optional[LoaRecord] = None
    lines: Sequence[str] = field(default_factory=tuple)
    count: Optional[int] = None
    label: Optional[str] = None
    actor_id: Optional[str] = None
    ephemeral: bool = True
    admin_controls: bool = False

    @classmethod
    def failure(cls, message: str) -> "ActionResult":
        return cls(ok=False, message=message, ephemeral=True)
