"""Best-effort numeric coercion for loosely typed feed values."""

from __future__ import annotations

import math
from typing import Any


def coerce_number(value: Any) -> float | None:
    """Convert ``value`` to a finite float, or ``None`` when that is not possible."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


__all__ = ["coerce_number"]
