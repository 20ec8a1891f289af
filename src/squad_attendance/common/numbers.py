from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (62.5 -> 63), not to even."""
    return int(math.floor(value + 0.5))
