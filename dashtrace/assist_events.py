"""Driver-assist engage / disengage / mode change transitions."""

import logging
from typing import List, Sequence

from .models import ASSIST_NONE, AssistEvent, TelemetryPoint

logger = logging.getLogger(__name__)

ASSIST_ENGAGED = "engaged"
ASSIST_DISCONNECTED = "disconnected"
ASSIST_MODE_CHANGE = "modeChange"


def classify_transition(from_mode: str, to_mode: str) -> str:
    if from_mode == ASSIST_NONE:
        return ASSIST_ENGAGED
    if to_mode == ASSIST_NONE:
        return ASSIST_DISCONNECTED
    return ASSIST_MODE_CHANGE


def detect_assist_events(points: Sequence[TelemetryPoint]) -> List[AssistEvent]:
    """
    Record every change of assist mode between consecutive points.

    There is no cooldown; a mode that flips back and forth produces an
    event per flip.
    """
    events: List[AssistEvent] = []

    for prev, curr in zip(points, points[1:]):
        from_mode = prev.assist_mode or ASSIST_NONE
        to_mode = curr.assist_mode or ASSIST_NONE
        if from_mode == to_mode:
            continue

        events.append(AssistEvent(
            time=curr.time,
            type=classify_transition(from_mode, to_mode),
            from_mode=from_mode,
            to_mode=to_mode,
            speed=curr.speed_mph,
            latitude=curr.latitude if curr.has_valid_gps else None,
            longitude=curr.longitude if curr.has_valid_gps else None,
        ))

    logger.debug("Detected %d assist transition(s)", len(events))
    return events
