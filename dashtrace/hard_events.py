"""Hard braking and hard acceleration detection."""

import logging
from typing import List, Optional, Sequence, Tuple

from .config import DetectionConfig
from .models import HardEvent, HardEvents, TelemetryPoint
from .numeric import clamp

logger = logging.getLogger(__name__)


def detect_hard_events(
    points: Sequence[TelemetryPoint],
    config: Optional[DetectionConfig] = None,
) -> HardEvents:
    """
    Find single samples past the hard brake or hard accel threshold.

    Braking and acceleration each have their own cooldown, so a brake
    right after a launch is still reported. Severity grows linearly from
    0 at the threshold to 1 at ``threshold + span`` and is clamped to [0, 1].

    Args:
        points: Time-sorted telemetry points
        config: Thresholds; hard_brake_threshold > 0 and
            hard_accel_threshold < 0 (positive g is braking)

    Returns:
        HardEvents with brake and accel events in time order
    """
    config = config or DetectionConfig()
    if len(points) < 2:
        return HardEvents()

    brake_threshold = config.hard_brake_threshold
    accel_threshold = config.hard_accel_threshold

    brake_events: List[HardEvent] = []
    accel_events: List[HardEvent] = []
    last_brake = float("-inf")
    last_accel = float("-inf")

    for point in points:
        g = point.g_force_longitudinal

        if g >= brake_threshold and point.time - last_brake >= config.hard_event_cooldown:
            severity = (g - brake_threshold) / config.hard_brake_span
            brake_events.append(HardEvent(point.time, g, clamp(severity, 0.0, 1.0)))
            last_brake = point.time

        if g <= accel_threshold and point.time - last_accel >= config.hard_event_cooldown:
            severity = (abs(g) - abs(accel_threshold)) / config.hard_accel_span
            accel_events.append(HardEvent(point.time, g, clamp(severity, 0.0, 1.0)))
            last_accel = point.time

    logger.debug(
        "Detected %d hard brakes, %d hard accels", len(brake_events), len(accel_events)
    )
    return HardEvents(brake_events=tuple(brake_events), accel_events=tuple(accel_events))


def hard_event_at_time(
    events: HardEvents,
    time: float,
    tolerance: float = 3.0,
) -> Optional[Tuple[str, HardEvent]]:
    """
    Look up a hard event near ``time``.

    Brake events are checked before accel events.

    Returns:
        ("brake" or "accel", event), or None if nothing is within tolerance
    """
    for event in events.brake_events:
        if abs(event.time - time) <= tolerance:
            return "brake", event
    for event in events.accel_events:
        if abs(event.time - time) <= tolerance:
            return "accel", event
    return None
