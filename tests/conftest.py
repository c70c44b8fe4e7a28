"""Pytest fixtures for dashtrace tests."""

import numpy as np
import pytest

from dashtrace.frames import FrameRecord
from dashtrace.models import PointSeries, TelemetryPoint


@pytest.fixture
def make_points():
    """Build telemetry points from times plus per-channel values.

    Each channel is either a scalar (same for every point) or a sequence
    with one value per time.
    """

    def _create(times, **channels):
        times = [float(t) for t in times]
        points = []
        for i, t in enumerate(times):
            values = {}
            for name, value in channels.items():
                if isinstance(value, (list, tuple, np.ndarray)):
                    values[name] = value[i]
                else:
                    values[name] = value
            points.append(TelemetryPoint(time=t, **values))
        return points

    return _create


@pytest.fixture
def make_series():
    """Wrap points in a PointSeries."""

    def _create(points):
        return PointSeries(
            points=tuple(points),
            start_time=points[0].time,
            end_time=points[-1].time,
        )

    return _create


@pytest.fixture
def make_clips():
    """Create decoder-style clips with ``frames_per_clip`` identical frames."""

    def _create(clip_count=2, frames_per_clip=36, **fields):
        return {
            clip: [FrameRecord(**fields) for _ in range(frames_per_clip)]
            for clip in range(clip_count)
        }

    return _create


@pytest.fixture
def braking_points(make_points):
    """20 points over 2s, 30 -> 18 mph, decel peaking at 0.5g at the midpoint."""
    times = np.linspace(0.0, 2.0, 20)
    speeds = np.linspace(30.0, 18.0, 20)
    decel = [0.5 * (1 - abs(i - 10) / 10) for i in range(20)]
    return make_points(times, speed_mph=speeds, g_force_longitudinal=decel)


@pytest.fixture
def sample_frame_dicts():
    """Frames as the decoder hands them over."""
    return [
        {
            "speed_mph": 30.5, "speed_kph": 49.08, "g_force_x": 0.01, "g_force_y": -0.12,
            "g_force_z": 1.0, "steering_wheel_angle": 2.5, "autopilot_name": "FSD",
            "brake_applied": False, "accelerator_pedal_position": 0.2,
            "latitude_deg": 37.7749, "longitude_deg": -122.4194, "heading_deg": 90.0,
            "turn_signal_name": "NONE", "gear_name": "D",
        },
        {
            "speed_mph": 28.0, "speed_kph": 45.06, "g_force_x": -0.02, "g_force_y": -0.35,
            "steering_wheel_angle": -1.25, "brake_applied": True,
            "latitude_deg": 37.7750, "longitude_deg": -122.4195,
        },
    ]


@pytest.fixture
def spike_clip_dicts():
    """One 36-frame clip at 60 mph with a single 0.45g braking spike at 20s."""
    frames = []
    for i in range(36):
        frames.append({
            "speed_mph": 60.0,
            "speed_kph": 96.56,
            "g_force_y": -0.45 if i == 12 else 0.0,
            "autopilot_name": "NONE",
        })
    return {"0": {"frames": frames}}
