from __future__ import annotations

from concurrent.futures import Executor
from typing import Iterable, Optional

import structlog

from .gateway import EffectGateway
from .model import Effect, EffectKind

logger = structlog.get_logger("shiftbot.effects")


class EffectRunner:
    """Executes effects best-effort.

    Each effect runs on its own; a failure is logged as a warning and never
    reaches the caller. With an ``executor`` the effects run in the background.
    """

    def __init__(self, gateway: EffectGateway, *, executor: Optional[Executor] = None):
        self._gateway = gateway
        self._executor = executor

    def dispatch(self, effects: Iterable[Effect]) -> list[Effect]:
        """Run ``effects``; returns the ones that failed (inline mode only)."""
        failed: list[Effect] = []
        for effect in effects:
            if self._executor is not None:
                self._executor.submit(self._run_one, effect)
            elif not self._run_one(effect):
                failed.append(effect)
        return failed

    def _run_one(self, effect: Effect) -> bool:
        try:
            if effect.kind == EffectKind.GRANT_ROLE:
                self._gateway.grant_role(guild_id=effect.guild_id, user_id=effect.user_id)
            elif effect.kind == EffectKind.REVOKE_ROLE:
                self._gateway.revoke_role(guild_id=effect.guild_id, user_id=effect.user_id)
            elif effect.kind == EffectKind.DIRECT_MESSAGE:
                self._gateway.send_direct_message(user_id=effect.user_id, content=effect.content or "")
            elif effect.kind == EffectKind.BROADCAST:
                self._gateway.broadcast(guild_id=effect.guild_id, embed=effect.embed or {})
            return True
        except Exception as exc:
            logger.warning(
                "effect_failed",
                kind=effect.kind.value,
                guild_id=effect.guild_id,
                user_id=effect.user_id,
                error=str(exc),
            )
            return False
