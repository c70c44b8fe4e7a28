"""Raw per-frame telemetry records as produced by the frame decoder.

The decoder itself lives outside this package. It hands over a mapping
from clip index to ``{"frames": [...]}`` where every frame is a flat dict
of sensor fields. Missing numeric fields count as 0 and missing state
names as "NONE".
"""

import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping

from .models import ASSIST_NONE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrameRecord:
    """One decoded video frame worth of vehicle state."""

    speed_mph: float = 0.0
    speed_kph: float = 0.0
    g_force_x: float = 0.0  # Lateral
    g_force_y: float = 0.0  # Longitudinal, negative while decelerating
    g_force_z: float = 0.0
    steering_wheel_angle: float = 0.0
    autopilot_name: str = ASSIST_NONE
    brake_applied: bool = False
    accelerator_pedal_position: float = 0.0
    latitude_deg: float = 0.0
    longitude_deg: float = 0.0
    # Only used by the CSV export
    heading_deg: float = 0.0
    turn_signal_name: str = "NONE"
    gear_name: str = "D"


_NUMERIC_FIELDS = (
    "speed_mph",
    "speed_kph",
    "g_force_x",
    "g_force_y",
    "g_force_z",
    "steering_wheel_angle",
    "accelerator_pedal_position",
    "latitude_deg",
    "longitude_deg",
    "heading_deg",
)


def _as_float(name: str, value: Any) -> float:
    if value is None or value == "":
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.warning("Invalid %s value %r, using 0", name, value)
        return 0.0
    if not math.isfinite(number):
        logger.warning("Non-finite %s value %r, using 0", name, value)
        return 0.0
    return number


def frame_from_dict(raw: Mapping[str, Any]) -> FrameRecord:
    """Build a FrameRecord from a decoder dict, defaulting missing fields."""
    values: Dict[str, Any] = {name: _as_float(name, raw.get(name)) for name in _NUMERIC_FIELDS}
    values["autopilot_name"] = raw.get("autopilot_name") or ASSIST_NONE
    values["turn_signal_name"] = raw.get("turn_signal_name") or "NONE"
    values["gear_name"] = raw.get("gear_name") or "D"
    values["brake_applied"] = bool(raw.get("brake_applied"))
    return FrameRecord(**values)


def clip_index_from_key(key: Any) -> int:
    """Parse a clip key such as 3, "3" or "3_front" into its integer index."""
    if isinstance(key, int):
        return key
    head = str(key).split("_")[0]
    try:
        return int(head)
    except ValueError:
        raise ValueError(f"Invalid clip key: {key!r}")


def parse_clip_data(data: Mapping[Any, Any]) -> Dict[int, List[FrameRecord]]:
    """
    Normalize decoder output into ``{clip_index: [FrameRecord, ...]}``.

    Each clip value may be ``{"frames": [...]}`` or a bare list of frames.
    Frames may already be FrameRecord instances. Clips without frames are
    kept as empty lists so callers can see which clips were present.

    Raises:
        ValueError: If data is not a mapping or a clip key is not numeric
    """
    if not isinstance(data, Mapping):
        raise ValueError(f"Clip data must be a mapping, got {type(data).__name__}")

    clips: Dict[int, List[FrameRecord]] = {}
    for key, clip in data.items():
        clip_index = clip_index_from_key(key)
        if isinstance(clip, Mapping):
            raw_frames = clip.get("frames") or []
        elif isinstance(clip, list):
            raw_frames = clip
        else:
            logger.warning("Skipping clip %s: unsupported value %r", key, type(clip).__name__)
            raw_frames = []

        frames = [
            f if isinstance(f, FrameRecord) else frame_from_dict(f)
            for f in raw_frames
        ]
        clips.setdefault(clip_index, []).extend(frames)

    return clips


def read_clips_json(json_filename: str) -> Dict[int, List[FrameRecord]]:
    """
    Read decoder output saved as JSON.

    Args:
        json_filename: Path to a JSON object keyed by clip index

    Returns:
        Mapping of clip index to frame records
    """
    with open(json_filename, "r") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"{json_filename} is not valid JSON: {e}")
    return parse_clip_data(data)
