"""Nearest-in-time lookup over time-sorted sequences."""

from typing import Optional, Sequence, TypeVar

import numpy as np

T = TypeVar("T")


def find_nearest_index(times: Sequence[float], time: float) -> Optional[int]:
    """
    Find the index of the value closest to ``time``.

    Args:
        times: Ascending timestamps
        time: Query time in seconds

    Returns:
        Index of the nearest timestamp (the earlier one on a tie), or None
        if ``times`` is empty
    """
    n = len(times)
    if n == 0:
        return None

    idx = int(np.searchsorted(np.asarray(times, dtype=float), time, side="left"))
    if idx >= n:
        return n - 1
    if idx > 0 and abs(times[idx - 1] - time) <= abs(times[idx] - time):
        return idx - 1
    return idx


def point_at_time(points: Sequence[T], time: float) -> Optional[T]:
    """Return the item of a time-sorted sequence nearest to ``time``.

    Items only need a ``time`` attribute (telemetry points, events). This
    collects the timestamps on every call; repeated lookups on a loaded
    series go through ``PointSeries.point_at``, which caches them.
    """
    idx = find_nearest_index([p.time for p in points], time)
    if idx is None:
        return None
    return points[idx]
