"""Tests for building the analysis timeline."""

import pytest

from dashtrace.frames import FrameRecord
from dashtrace.sample_store import (
    MAX_POINTS,
    build_point_series,
    frame_time,
    frame_to_point,
    sample_points,
)


class TestFrameToPoint:
    def test_longitudinal_sign_is_flipped(self):
        """Decoder reports braking as negative g_force_y; points use positive."""
        point = frame_to_point(FrameRecord(g_force_y=-0.4), 1.0)
        assert point.g_force_longitudinal == pytest.approx(0.4)

    def test_acceleration_is_negative(self):
        point = frame_to_point(FrameRecord(g_force_y=0.3), 1.0)
        assert point.g_force_longitudinal == pytest.approx(-0.3)

    def test_zero_stays_positive_zero(self):
        point = frame_to_point(FrameRecord(g_force_y=0.0), 1.0)
        assert str(point.g_force_longitudinal) == "0.0"

    def test_maps_all_fields(self):
        frame = FrameRecord(
            speed_mph=30.0, speed_kph=48.3, g_force_x=0.2, g_force_z=1.0,
            steering_wheel_angle=-15.0, autopilot_name="TACC", brake_applied=True,
            accelerator_pedal_position=0.4, latitude_deg=37.5, longitude_deg=-122.1,
        )
        point = frame_to_point(frame, 12.5)
        assert point.time == 12.5
        assert point.speed_mph == 30.0
        assert point.speed_kph == 48.3
        assert point.g_force_lateral == 0.2
        assert point.g_force_vertical == 1.0
        assert point.steering_angle_deg == -15.0
        assert point.assist_mode == "TACC"
        assert point.brake_applied is True
        assert point.throttle == 0.4
        assert point.latitude == 37.5
        assert point.longitude == -122.1


class TestFrameTime:
    def test_first_frame_of_clip(self):
        assert frame_time(2, 0, 36) == 120.0

    def test_frame_spread_over_clip(self):
        assert frame_time(0, 18, 36) == pytest.approx(30.0)


class TestSamplePoints:
    def test_short_input_unchanged(self):
        assert sample_points([1, 2, 3], 5) == [1, 2, 3]

    def test_downsamples_to_exact_count(self):
        sampled = sample_points(list(range(1000)), 500)
        assert len(sampled) == 500

    def test_keeps_first_and_last(self):
        sampled = sample_points(list(range(1001)), 500)
        assert sampled[0] == 0
        assert sampled[-1] == 1000

    def test_uniform_stride(self):
        assert sample_points(list(range(9)), 5) == [0, 2, 4, 6, 8]


class TestBuildPointSeries:
    def test_samples_every_stride_frame(self, make_clips):
        """36 frames per clip gives a stride of 3, so 12 points per clip."""
        clips = make_clips(clip_count=1, frames_per_clip=36, speed_mph=20.0)
        series = build_point_series(clips)

        assert len(series) == 12
        assert series.points[0].time == 0.0
        assert series.points[1].time == pytest.approx(5.0)

    def test_short_clip_keeps_every_frame(self, make_clips):
        clips = make_clips(clip_count=1, frames_per_clip=5)
        series = build_point_series(clips)
        assert len(series) == 5

    def test_clip_offsets(self, make_clips):
        clips = make_clips(clip_count=3, frames_per_clip=12)
        series = build_point_series(clips)

        assert series.start_time == 0.0
        assert series.points[12].time == 60.0
        assert series.points[24].time == 120.0
        assert series.end_time == pytest.approx(120.0 + 55.0)
        assert series.duration == pytest.approx(175.0)

    def test_points_sorted(self):
        clips = {
            2: [FrameRecord(speed_mph=3.0)] * 12,
            0: [FrameRecord(speed_mph=1.0)] * 12,
            1: [FrameRecord(speed_mph=2.0)] * 12,
        }
        series = build_point_series(clips)
        times = [p.time for p in series.points]

        assert all(a < b for a, b in zip(times, times[1:]))
        assert series.points[0].speed_mph == 1.0
        assert series.points[-1].speed_mph == 3.0

    def test_capped_at_max_points(self, make_clips):
        """50 clips of 24 frames give 600 samples, capped to 500."""
        clips = make_clips(clip_count=50, frames_per_clip=24)
        series = build_point_series(clips)

        assert len(series) == MAX_POINTS
        times = [p.time for p in series.points]
        assert all(a < b for a, b in zip(times, times[1:]))
        assert times[0] == 0.0
        assert times[-1] == pytest.approx(49 * 60 + 55.0)

    def test_unordered_clips_over_cap(self):
        """Clip keys arrive newest first and yield 600 samples before capping."""
        clips = {
            clip: [FrameRecord(speed_mph=float(clip))] * 24
            for clip in reversed(range(50))
        }
        series = build_point_series(clips)
        times = [p.time for p in series.points]

        assert len(series) == MAX_POINTS
        assert all(a < b for a, b in zip(times, times[1:]))
        assert series.points[0].time == 0.0
        assert series.points[0].speed_mph == 0.0
        assert series.points[-1].time == pytest.approx(49 * 60 + 55.0)
        assert series.points[-1].speed_mph == 49.0
        assert series.start_time == 0.0
        assert series.end_time == series.points[-1].time

    def test_empty_clip_skipped(self, make_clips):
        clips = make_clips(clip_count=1, frames_per_clip=12)
        clips[1] = []
        series = build_point_series(clips)
        assert len(series) == 12

    def test_no_frames_returns_none(self):
        assert build_point_series({}) is None
        assert build_point_series({0: [], 1: []}) is None
