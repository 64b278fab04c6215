from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import ShiftStatus
from .model import ShiftFilter, ShiftRecord


class ShiftRepository(Protocol):
    """Persistence for shift rows.

    The ``mark_*`` methods are conditional updates: each applies only when the
    row is still in the expected state and reports whether it did.
    """

    def create(self, *, user_id: str, guild_id: str, shift_type: str, start_ts: int) -> int:
        raise NotImplementedError

    def get_by_id(self, shift_id: int) -> Optional[ShiftRecord]:
        raise NotImplementedError

    def get_open_for_user(
        self,
        *,
        user_id: str,
        guild_id: str,
        statuses: Optional[Sequence[ShiftStatus]] = None,
    ) -> Optional[ShiftRecord]:
        """Most recent shift of the user in the guild in one of ``statuses``.

        ``statuses`` defaults to the open states (active, paused).
        """

        raise NotImplementedError

    def mark_paused(self, *, shift_id: int, pause_ts: int) -> bool:
        """active -> paused, rolling the open interval into total_seconds."""

        raise NotImplementedError

    def mark_resumed(self, *, shift_id: int, resume_ts: int) -> bool:
        """paused -> active, restarting the interval at resume_ts."""

        raise NotImplementedError

    def mark_ended(self, *, shift_id: int, end_ts: int) -> bool:
        """active|paused -> ended; an active interval is rolled in first."""

        raise NotImplementedError

    def list_matching(
        self,
        *,
        shift_filter: ShiftFilter,
        statuses: Optional[Sequence[ShiftStatus]] = None,
    ) -> Sequence[ShiftRecord]:
        raise NotImplementedError

    def delete(self, *, shift_id: int) -> bool:
        raise NotImplementedError
