from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import LoaStatus
from .model import LoaRecord


class LoaRepository(Protocol):
    def create(self, *, user_id: str, guild_id: str, start_ts: int, end_ts: int, reason: str) -> int:
        raise NotImplementedError

    def get_by_id(self, loa_id: int) -> Optional[LoaRecord]:
        raise NotImplementedError

    def decide(self, *, loa_id: int, status: LoaStatus, actor_id: str) -> bool:
        """pending -> status; False when the row is missing or already resolved."""

        raise NotImplementedError

    def list_for_user(self, *, user_id: str, guild_id: str, limit: int) -> Sequence[LoaRecord]:
        """Newest first."""

        raise NotImplementedError

    def list_for_guild(
        self,
        *,
        guild_id: str,
        status: Optional[LoaStatus] = None,
        limit: int = 50,
    ) -> Sequence[LoaRecord]:
        """Newest first."""

        raise NotImplementedError
