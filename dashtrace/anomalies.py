"""Threshold passes for speed, g-force and steering outliers."""

import logging
from typing import List, Optional, Sequence

from .config import DetectionConfig
from .models import Anomaly, AnomalySet, TelemetryPoint

logger = logging.getLogger(__name__)


def _graded_severity(value: float, threshold: float, medium: float, high: float) -> int:
    """1 above threshold, 2 above threshold*medium, 3 above threshold*high."""
    if value > threshold * high:
        return 3
    if value > threshold * medium:
        return 2
    return 1


def detect_anomalies(
    points: Sequence[TelemetryPoint],
    config: Optional[DetectionConfig] = None,
) -> AnomalySet:
    """
    Flag samples whose rate of change or g-force stands out.

    - Speed: change rate above ``speed_change_rate`` mph/s
    - G-force: |longitudinal g| above ``gforce_spike``, at most one every
      ``gforce_anomaly_cooldown`` seconds
    - Steering: angle rate above ``steering_rate`` deg/s, at most one every
      ``steering_anomaly_cooldown`` seconds

    Pairs with a non-positive time delta or a gap longer than
    ``max_rate_gap`` are skipped entirely.
    """
    config = config or DetectionConfig()
    if len(points) < 3:
        return AnomalySet()

    speed: List[Anomaly] = []
    gforce: List[Anomaly] = []
    steering: List[Anomaly] = []

    for prev, curr in zip(points, points[1:]):
        dt = curr.time - prev.time
        if dt <= 0 or dt > config.max_rate_gap:
            continue

        speed_rate = abs(curr.speed_mph - prev.speed_mph) / dt
        if speed_rate > config.speed_change_rate:
            speed.append(Anomaly(
                time=curr.time,
                value=speed_rate,
                severity=_graded_severity(speed_rate, config.speed_change_rate, 2, 3),
                description=f"Speed: {speed_rate:.1f} mph/s",
            ))

        g = curr.g_force_longitudinal
        if abs(g) > config.gforce_spike:
            if not gforce or curr.time - gforce[-1].time >= config.gforce_anomaly_cooldown:
                gforce.append(Anomaly(
                    time=curr.time,
                    value=g,
                    severity=_graded_severity(abs(g), config.gforce_spike, 1.5, 2),
                    description=f"G-Force: {g:.2f}g",
                ))

        steering_rate = abs(curr.steering_angle_deg - prev.steering_angle_deg) / dt
        if steering_rate > config.steering_rate:
            if not steering or curr.time - steering[-1].time >= config.steering_anomaly_cooldown:
                steering.append(Anomaly(
                    time=curr.time,
                    value=steering_rate,
                    severity=_graded_severity(steering_rate, config.steering_rate, 2, 3),
                    description=f"Steering: {steering_rate:.0f} deg/s",
                ))

    logger.debug(
        "Detected %d speed, %d g-force, %d steering anomalies",
        len(speed), len(gforce), len(steering),
    )
    return AnomalySet(speed=tuple(speed), gforce=tuple(gforce), steering=tuple(steering))


def anomaly_at_time(
    anomalies: Sequence[Anomaly],
    time: float,
    tolerance: float = 2.0,
) -> Optional[Anomaly]:
    """Return the first anomaly within ``tolerance`` seconds of ``time``."""
    for anomaly in anomalies:
        if abs(anomaly.time - time) <= tolerance:
            return anomaly
    return None
