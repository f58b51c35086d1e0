"""Rounding and clamping helpers applied at output boundaries."""

import math
from typing import Optional


def round_half_away(value: Optional[float], digits: int = 0) -> Optional[float]:
    """Round halves away from zero (2.5 -> 3, -4.25 -> -4.3 at one digit); None passes through."""
    if value is None:
        return None
    factor = 10 ** digits
    # Trim float noise first so 0.285 * 100 = 28.4999... still rounds to 29
    scaled = round(value * factor, 9)
    # + 0.0 turns -0.0 into 0.0
    return math.copysign(math.floor(abs(scaled) + 0.5), scaled) / factor + 0.0


def round_whole(value: Optional[float]) -> Optional[int]:
    if value is None:
        return None
    return int(round_half_away(value, 0))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
