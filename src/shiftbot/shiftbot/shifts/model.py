from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from ..core.enums import ShiftStatus


@dataclass(frozen=True)
class ShiftRecord:
    """Thực thể miền (domain): Ca làm (Shift) với thời lượng cộng dồn.

    ``start_ts`` marks the beginning of the current active interval and is
    reset on every resume. ``total_seconds`` only holds closed intervals.
    """

    shift_id: int
    user_id: str
    guild_id: str
    shift_type: str
    status: ShiftStatus
    start_ts: int
    pause_ts: Optional[int] = None
    resume_ts: Optional[int] = None
    end_ts: Optional[int] = None
    total_seconds: int = 0

    @property
    def is_open(self) -> bool:
        return self.status in ShiftStatus.open_states()


@dataclass(frozen=True)
class ShiftFilter:
    guild_id: str
    user_id: Optional[str] = None
    before_ts: Optional[int] = None
    ids: Optional[Sequence[int]] = None

    @property
    def is_narrowed(self) -> bool:
        return self.user_id is not None or self.before_ts is not None or self.ids is not None

    def matches(self, record: ShiftRecord) -> bool:
        if record.guild_id != self.guild_id:
            return False
        if self.user_id is not None and record.user_id != self.user_id:
            return False
        if self.before_ts is not None and not record.start_ts < self.before_ts:
            return False
        if self.ids is not None and record.shift_id not in set(self.ids):
            return False
        return True
