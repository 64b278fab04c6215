from __future__ import annotations

from typing import Optional

from ..core.exceptions import ValidationError


def clamp_limit(value: Optional[int], *, default: int, maximum: int) -> int:
    """Apply the default for missing/non-positive limits and cap at maximum."""
    if value is None or int(value) <= 0:
        return default
    return min(int(value), maximum)


def parse_id_list(value: str) -> list[int]:
    """Parse a comma separated id list ("1, 2,3").

    Blank entries are skipped; anything else that is not a positive integer
    makes the whole list invalid.
    """
    ids: list[int] = []
    for part in (value or "").split(","):
        part = part.strip()
        if not part:
            continue
        if not part.isdigit() or int(part) <= 0:
            raise ValidationError(f"Invalid shift id: {part!r}")
        ids.append(int(part))
    if not ids:
        raise ValidationError("No valid ids given")
    return ids
