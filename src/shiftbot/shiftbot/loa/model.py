from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import LoaStatus


@dataclass(frozen=True)
class LoaRecord:
    """Thực thể miền (domain): Đơn xin nghỉ (Leave of Absence)."""

    loa_id: int
    user_id: str
    guild_id: str
    start_ts: int
    end_ts: int
    reason: str
    status: LoaStatus
    actor_id: Optional[str] = None

    @property
    def is_resolved(self) -> bool:
        return self.status != LoaStatus.PENDING
