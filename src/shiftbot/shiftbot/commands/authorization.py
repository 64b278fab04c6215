from __future__ import annotations

from typing import Iterable, Optional, Union

from ..core.constants import MANAGE_GUILD_PERMISSION


def has_permission(permissions: Union[int, str, None], bit: int) -> bool:
    try:
        return bool(int(permissions or 0) & bit)
    except (TypeError, ValueError):
        return False


def is_admin(
    *,
    role_ids: Iterable[str],
    permissions: Union[int, str, None],
    admin_role_id: Optional[str] = None,
) -> bool:
    """Admin = holds the configured admin role or may manage the server."""
    if admin_role_id and str(admin_role_id) in {str(r) for r in role_ids or ()}:
        return True
    return has_permission(permissions, MANAGE_GUILD_PERMISSION)
