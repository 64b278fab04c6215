from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class EffectKind(str, Enum):
    GRANT_ROLE = "grant_role"
    REVOKE_ROLE = "revoke_role"
    DIRECT_MESSAGE = "direct_message"
    BROADCAST = "broadcast"


@dataclass(frozen=True)
class Effect:
    """A best-effort side effect on the chat platform.

    Effects are produced alongside ledger mutations and executed afterwards;
    their failure never undoes or fails the mutation.
    """

    kind: EffectKind
    guild_id: str
    user_id: Optional[str] = None
    content: Optional[str] = None
    embed: Optional[dict[str, Any]] = None

    @classmethod
    def grant_role(cls, *, guild_id: str, user_id: str) -> "Effect":
        return cls(EffectKind.GRANT_ROLE, guild_id=str(guild_id), user_id=str(user_id))

    @classmethod
    def revoke_role(cls, *, guild_id: str, user_id: str) -> "Effect":
        return cls(EffectKind.REVOKE_ROLE, guild_id=str(guild_id), user_id=str(user_id))

    @classmethod
    def direct_message(cls, *, guild_id: str, user_id: str, content: str) -> "Effect":
        return cls(EffectKind.DIRECT_MESSAGE, guild_id=str(guild_id), user_id=str(user_id), content=content)

    @classmethod
    def broadcast(cls, *, guild_id: str, embed: dict[str, Any]) -> "Effect":
        return cls(EffectKind.BROADCAST, guild_id=str(guild_id), embed=embed)


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of a ledger mutation: the new record plus effects to run."""

    record: T
    effects: tuple[Effect, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class BulkOutcome(Generic[T]):
    records: tuple[T, ...] = field(default_factory=tuple)
    effects: tuple[Effect, ...] = field(default_factory=tuple)

    @property
    def count(self) -> int:
        return len(self.records)
