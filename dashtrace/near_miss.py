"""Near-miss scoring from hard braking combined with evasive steering."""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .config import DetectionConfig
from .models import (
    SEVERITY_CRITICAL,
    SEVERITY_INFO,
    SEVERITY_WARNING,
    NearMiss,
    TelemetryPoint,
)
from .numeric import clamp, round_half_up

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _BrakeCandidate:
    time: float
    brake_g: float
    speed: float


@dataclass(frozen=True)
class _SteerCandidate:
    time: float
    steering_rate: float


def near_miss_score(brake_g: float, steering_rate: float, speed: float) -> float:
    """
    Composite 1-10 score.

    (brake_g * 10 + steering_rate / 10) scaled by a speed factor of
    0.5 + speed / 60 (1.0 at 30 mph, 1.5 at 60 mph), rounded to one decimal.
    """
    base = brake_g * 10 + steering_rate / 10
    score = base * (0.5 + speed / 60)
    return clamp(round_half_up(score, 1), 1.0, 10.0)


def near_miss_severity(score: float) -> str:
    if score >= 7:
        return SEVERITY_CRITICAL
    if score >= 5:
        return SEVERITY_WARNING
    return SEVERITY_INFO


def _brake_candidates(points: Sequence[TelemetryPoint], config: DetectionConfig) -> List[_BrakeCandidate]:
    candidates = []
    for point in points[1:]:
        brake_g = max(0.0, point.g_force_longitudinal)
        if brake_g >= config.near_miss_brake_g and point.speed_mph >= config.near_miss_min_speed:
            candidates.append(_BrakeCandidate(point.time, brake_g, point.speed_mph))
    return candidates


def _steer_candidates(points: Sequence[TelemetryPoint], config: DetectionConfig) -> List[_SteerCandidate]:
    candidates = []
    for prev, curr in zip(points, points[1:]):
        dt = curr.time - prev.time
        if dt <= 0 or dt > config.max_rate_gap:
            continue
        rate = abs(curr.steering_angle_deg - prev.steering_angle_deg) / dt
        if rate >= config.near_miss_steering_rate and curr.speed_mph >= config.near_miss_min_speed:
            candidates.append(_SteerCandidate(curr.time, rate))
    return candidates


def detect_near_misses(
    points: Sequence[TelemetryPoint],
    config: Optional[DetectionConfig] = None,
) -> List[NearMiss]:
    """
    Score hard brakes by how much evasive steering happened around them.

    Every brake candidate is paired with the strongest steering rate found
    within ``near_miss_window`` seconds either side. At most one near miss
    is reported per (rounded) second.

    Returns:
        Near misses scoring at least ``near_miss_min_score``, in time order
    """
    config = config or DetectionConfig()
    if len(points) < 3:
        return []

    brakes = _brake_candidates(points, config)
    steers = _steer_candidates(points, config)

    near_misses: List[NearMiss] = []
    seen_seconds = set()

    for brake in brakes:
        second = int(round_half_up(brake.time))
        if second in seen_seconds:
            continue

        nearby = [s.steering_rate for s in steers
                  if abs(s.time - brake.time) <= config.near_miss_window]
        max_rate = max(nearby) if nearby else 0.0

        score = near_miss_score(brake.brake_g, max_rate, brake.speed)
        if score < config.near_miss_min_score:
            continue

        near_misses.append(NearMiss(
            time=brake.time,
            score=score,
            brake_g=brake.brake_g,
            steering_rate=max_rate,
            speed=brake.speed,
            severity=near_miss_severity(score),
            has_evasive_steering=bool(nearby),
        ))
        seen_seconds.add(second)

    near_misses.sort(key=lambda nm: nm.time)

    high = sum(1 for nm in near_misses if nm.score >= 5)
    if high:
        logger.debug("Detected %d near-miss incident(s) (score >= 5)", high)

    return near_misses


def filter_near_misses(near_misses: Sequence[NearMiss], min_score: float = 5.0) -> List[NearMiss]:
    """Keep near misses scoring at least ``min_score``."""
    return [nm for nm in near_misses if nm.score >= min_score]
