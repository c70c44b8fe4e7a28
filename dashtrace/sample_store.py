"""Build the unified analysis timeline from per-clip frame arrays.

Each clip covers a nominal 60 seconds of the event. Only about a dozen
frames per clip are kept, and the combined timeline is capped so every
detector works on a small, bounded sequence.
"""

import logging
from typing import List, Mapping, Optional, Sequence, TypeVar

from .frames import FrameRecord
from .models import ASSIST_NONE, PointSeries, TelemetryPoint
from .numeric import round_half_up

logger = logging.getLogger(__name__)

CLIP_DURATION = 60.0
SAMPLES_PER_CLIP = 12
MAX_POINTS = 500

T = TypeVar("T")


def frame_to_point(frame: FrameRecord, time: float) -> TelemetryPoint:
    """
    Convert a decoded frame into an analysis point.

    Sign convention: the decoder reports longitudinal g (g_force_y) as
    negative while decelerating. Points carry it negated, so a positive
    g_force_longitudinal is braking in every detector.
    """
    return TelemetryPoint(
        time=time,
        speed_mph=frame.speed_mph,
        speed_kph=frame.speed_kph,
        g_force_lateral=frame.g_force_x,
        g_force_longitudinal=-frame.g_force_y if frame.g_force_y else 0.0,
        g_force_vertical=frame.g_force_z,
        steering_angle_deg=frame.steering_wheel_angle,
        assist_mode=frame.autopilot_name or ASSIST_NONE,
        brake_applied=frame.brake_applied,
        throttle=frame.accelerator_pedal_position,
        latitude=frame.latitude_deg,
        longitude=frame.longitude_deg,
    )


def frame_time(clip_index: int, frame_index: int, frame_count: int,
               clip_duration: float = CLIP_DURATION) -> float:
    """Event time of a frame, assuming frames are spread evenly over the clip."""
    return clip_index * clip_duration + (frame_index / frame_count) * clip_duration


def sample_points(points: Sequence[T], max_points: int) -> List[T]:
    """
    Downsample to exactly ``max_points`` items with a uniform stride.

    The first and last items are always kept.
    """
    if len(points) <= max_points:
        return list(points)
    if max_points <= 1:
        return list(points[:max_points])

    step = (len(points) - 1) / (max_points - 1)
    return [points[int(round_half_up(i * step))] for i in range(max_points)]


def build_point_series(
    clips: Mapping[int, Sequence[FrameRecord]],
    clip_duration: float = CLIP_DURATION,
    samples_per_clip: int = SAMPLES_PER_CLIP,
    max_points: int = MAX_POINTS,
) -> Optional[PointSeries]:
    """
    Normalize per-clip frame arrays into one chronological point sequence.

    Args:
        clips: Mapping of clip index to decoded frames
        clip_duration: Nominal length of each clip in seconds
        samples_per_clip: Approximate number of frames kept per clip
        max_points: Cap on the combined sequence length

    Returns:
        PointSeries, or None if no clip yielded any frame
    """
    all_points: List[TelemetryPoint] = []

    for clip_index in sorted(clips):
        frames = clips[clip_index]
        frame_count = len(frames) if frames else 0
        if frame_count == 0:
            logger.debug("Clip %d has no frames, skipping", clip_index)
            continue

        stride = max(1, frame_count // samples_per_clip)
        for i in range(0, frame_count, stride):
            t = frame_time(clip_index, i, frame_count, clip_duration)
            all_points.append(frame_to_point(frames[i], t))

    if not all_points:
        return None

    all_points.sort(key=lambda p: p.time)
    start_time = all_points[0].time
    end_time = all_points[-1].time

    sampled = sample_points(all_points, max_points)
    logger.debug(
        "Built %d points (%d before sampling) over %.1fs",
        len(sampled), len(all_points), end_time - start_time,
    )

    return PointSeries(points=tuple(sampled), start_time=start_time, end_time=end_time)
