"""Small numeric helpers shared by the detectors."""

import math


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with halves going up, e.g. 2.5 -> 3 and 0.25 -> 0.3 at 1 digit.

    Built-in round() rounds halves to even, which shifts scores and
    de-duplication keys that sit exactly on a half.
    """
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
