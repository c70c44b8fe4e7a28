"""Composite incident detection over a short sliding window.

For every sample the detector looks back over roughly the last 1.5
seconds and classifies what happened inside that window:

- braking: a real speed loss backed by strong deceleration
- swerve: strong lateral g held for a meaningful time at speed
- combined: both at once, always critical

One incident is emitted at most every ``incident_cooldown`` seconds,
whatever its type.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .config import DetectionConfig
from .models import (
    SEVERITY_CRITICAL,
    SEVERITY_INFO,
    SEVERITY_ORDER,
    SEVERITY_WARNING,
    Incident,
    TelemetryPoint,
)

logger = logging.getLogger(__name__)

INCIDENT_BRAKING = "braking"
INCIDENT_SWERVE = "swerve"
INCIDENT_COMBINED = "combined"


@dataclass(frozen=True)
class WindowStats:
    """Aggregates over points[start..end] (inclusive)."""

    start: int
    end: int
    max_decel_g: float
    avg_decel_g: float
    max_lateral_g: float
    avg_lateral_g: float
    sustained_lateral_ms: float
    speed_drop: float


def window_start(points: Sequence[TelemetryPoint], end: int, window: float) -> int:
    """Walk back from ``end`` to the first sample at least ``window`` seconds earlier.

    Stops at index 0 when the sequence is shorter than the window.
    """
    start = end
    end_time = points[end].time
    while start > 0 and end_time - points[start].time < window:
        start -= 1
    return start


def compute_window_stats(
    points: Sequence[TelemetryPoint],
    start: int,
    end: int,
    sustain_threshold: float,
) -> WindowStats:
    """
    Compute deceleration, lateral and speed aggregates for a window.

    Deceleration stats only use samples with positive longitudinal g.
    ``sustained_lateral_ms`` adds up the time between consecutive samples
    that are both above ``sustain_threshold`` lateral g.
    """
    window = points[start:end + 1]

    decels = [p.g_force_longitudinal for p in window if p.g_force_longitudinal > 0]
    laterals = [abs(p.g_force_lateral) for p in window]

    sustained_ms = 0.0
    for prev, curr in zip(window, window[1:]):
        if abs(prev.g_force_lateral) > sustain_threshold and abs(curr.g_force_lateral) > sustain_threshold:
            sustained_ms += (curr.time - prev.time) * 1000.0

    return WindowStats(
        start=start,
        end=end,
        max_decel_g=max(decels) if decels else 0.0,
        avg_decel_g=sum(decels) / len(decels) if decels else 0.0,
        max_lateral_g=max(laterals) if laterals else 0.0,
        avg_lateral_g=sum(laterals) / len(laterals) if laterals else 0.0,
        sustained_lateral_ms=sustained_ms,
        speed_drop=points[start].speed_mph - points[end].speed_mph,
    )


def is_braking(stats: WindowStats, start_speed: float, config: DetectionConfig) -> bool:
    return (
        start_speed >= config.braking_min_speed
        and stats.speed_drop >= config.braking_min_speed_drop
        and (stats.avg_decel_g >= config.braking_avg_decel
             or stats.max_decel_g >= config.braking_peak_decel)
    )


def is_swerve(stats: WindowStats, start_speed: float, config: DetectionConfig) -> bool:
    return (
        start_speed >= config.swerve_min_speed
        and stats.max_lateral_g >= config.swerve_lateral_g
        and stats.sustained_lateral_ms >= config.swerve_sustained_ms
    )


def braking_severity(stats: WindowStats) -> str:
    if stats.speed_drop >= 15 or stats.max_decel_g >= 0.5:
        return SEVERITY_CRITICAL
    if stats.speed_drop >= 10 or stats.max_decel_g >= 0.4:
        return SEVERITY_WARNING
    return SEVERITY_INFO


def swerve_severity(stats: WindowStats) -> str:
    if stats.max_lateral_g >= 0.45:
        return SEVERITY_CRITICAL
    if stats.max_lateral_g >= 0.4:
        return SEVERITY_WARNING
    return SEVERITY_INFO


def detect_incidents(
    points: Sequence[TelemetryPoint],
    config: Optional[DetectionConfig] = None,
) -> List[Incident]:
    """
    Classify braking, swerve and combined incidents.

    Args:
        points: Time-sorted telemetry points
        config: Detection thresholds

    Returns:
        Incidents in time order
    """
    config = config or DetectionConfig()
    incidents: List[Incident] = []
    if len(points) < 2:
        return incidents

    sustain_threshold = config.swerve_lateral_g * config.swerve_sustain_ratio
    last_incident = float("-inf")

    for i in range(1, len(points)):
        point = points[i]
        if point.time - last_incident < config.incident_cooldown:
            continue

        j = window_start(points, i, config.incident_window)
        if point.time - points[j].time < config.incident_min_window:
            continue

        stats = compute_window_stats(points, j, i, sustain_threshold)
        start_speed = points[j].speed_mph
        has_braking = is_braking(stats, start_speed, config)
        has_swerve = is_swerve(stats, start_speed, config)

        if has_braking and has_swerve:
            incident_type = INCIDENT_COMBINED
            severity = SEVERITY_CRITICAL
        elif has_braking:
            incident_type = INCIDENT_BRAKING
            severity = braking_severity(stats)
        elif has_swerve:
            incident_type = INCIDENT_SWERVE
            severity = swerve_severity(stats)
        else:
            continue

        incidents.append(Incident(
            time=point.time,
            latitude=point.latitude if point.has_valid_gps else None,
            longitude=point.longitude if point.has_valid_gps else None,
            type=incident_type,
            severity=severity,
            speed_drop=stats.speed_drop,
            g_force=stats.max_decel_g,
            lateral_g=stats.max_lateral_g,
            speed=start_speed,
            assist_mode=point.assist_mode,
        ))
        last_incident = point.time

    if incidents:
        critical = sum(1 for inc in incidents if inc.severity == SEVERITY_CRITICAL)
        logger.debug("Detected %d incident(s), %d critical", len(incidents), critical)

    return incidents


def filter_by_severity(incidents: Sequence[Incident], min_severity: str = SEVERITY_INFO) -> List[Incident]:
    """Keep incidents at or above ``min_severity`` (info < warning < critical)."""
    min_level = SEVERITY_ORDER.get(min_severity, 0)
    return [inc for inc in incidents if SEVERITY_ORDER[inc.severity] >= min_level]
