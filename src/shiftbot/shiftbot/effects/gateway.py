from __future__ import annotations

import threading
from typing import Any, Callable, Optional, Protocol

import requests
import structlog

from ..core.constants import DEFAULT_EFFECT_TIMEOUT_SECONDS

logger = structlog.get_logger("shiftbot.effects.gateway")

API_BASE_URL = "https://discord.com/api/v10"


class EffectGateway(Protocol):
    def grant_role(self, *, guild_id: str, user_id: str) -> None:
        raise NotImplementedError

    def revoke_role(self, *, guild_id: str, user_id: str) -> None:
        raise NotImplementedError

    def send_direct_message(self, *, user_id: str, content: str) -> None:
        raise NotImplementedError

    def broadcast(self, *, guild_id: str, embed: dict[str, Any]) -> None:
        raise NotImplementedError


class NullGateway(EffectGateway):
    """Used when no bot token is configured: effects are only logged."""

    def grant_role(self, *, guild_id: str, user_id: str) -> None:
        logger.info("effect_skipped", kind="grant_role", guild_id=guild_id, user_id=user_id)

    def revoke_role(self, *, guild_id: str, user_id: str) -> None:
        logger.info("effect_skipped", kind="revoke_role", guild_id=guild_id, user_id=user_id)

    def send_direct_message(self, *, user_id: str, content: str) -> None:
        logger.info("effect_skipped", kind="direct_message", user_id=user_id)

    def broadcast(self, *, guild_id: str, embed: dict[str, Any]) -> None:
        logger.info("effect_skipped", kind="broadcast", guild_id=guild_id)


class DiscordRestGateway(EffectGateway):
    """Platform REST calls for role changes, DMs and the audit channel.

    Every call carries ``timeout`` so a slow platform cannot hold a worker.
    Each worker thread gets its own session from ``session_factory``.
    Role effects are no-ops without ``shift_role_id``; broadcasts are no-ops
    without ``log_channel_id``.
    """

    def __init__(
        self,
        *,
        bot_token: str,
        shift_role_id: Optional[str] = None,
        log_channel_id: Optional[str] = None,
        timeout: float = DEFAULT_EFFECT_TIMEOUT_SECONDS,
        base_url: str = API_BASE_URL,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ):
        self._shift_role_id = shift_role_id
        self._log_channel_id = log_channel_id
        self._timeout = float(timeout)
        self._base_url = base_url.rstrip("/")
        self._bot_token = bot_token
        self._session_factory = session_factory
        self._local = threading.local()

    def grant_role(self, *, guild_id: str, user_id: str) -> None:
        if not self._shift_role_id:
            return
        self._request("PUT", f"/guilds/{guild_id}/members/{user_id}/roles/{self._shift_role_id}")

    def revoke_role(self, *, guild_id: str, user_id: str) -> None:
        if not self._shift_role_id:
            return
        self._request("DELETE", f"/guilds/{guild_id}/members/{user_id}/roles/{self._shift_role_id}")

    def send_direct_message(self, *, user_id: str, content: str) -> None:
        channel = self._request("POST", "/users/@me/channels", json={"recipient_id": str(user_id)})
        self._request("POST", f"/channels/{channel['id']}/messages", json={"content": content})

    def broadcast(self, *, guild_id: str, embed: dict[str, Any]) -> None:
        if not self._log_channel_id:
            return
        self._request("POST", f"/channels/{self._log_channel_id}/messages", json={"embeds": [embed]})

    def _session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._session_factory()
            session.headers.update({"Authorization": f"Bot {self._bot_token}"})
            self._local.session = session
        return session

    def _request(self, method: str, path: str, json: Optional[dict] = None) -> Any:
        r = self._session().request(method, f"{self._base_url}{path}", json=json, timeout=self._timeout)
        r.raise_for_status()
        if r.status_code == 204 or not r.content:
            return None
        return r.json()
