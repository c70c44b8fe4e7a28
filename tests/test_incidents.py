"""Tests for composite incident detection."""

import numpy as np
import pytest

from dashtrace.incidents import (
    compute_window_stats,
    detect_incidents,
    filter_by_severity,
    window_start,
)


def _drive(make_points, drops, end=15.0, start_speed=40.0, **extra):
    """Points every 0.1s; each (t0, t1) in ``drops`` loses 12 mph under 0.5g."""
    times = np.round(np.arange(0.0, end + 0.05, 0.1), 1)
    knots_t = [0.0]
    knots_v = [start_speed]
    speed = start_speed
    for t0, t1 in drops:
        if t0 > knots_t[-1]:
            knots_t.append(t0)
            knots_v.append(speed)
        knots_t.append(t1)
        knots_v.append(speed - 12.0)
        speed -= 12.0
    knots_t.append(end)
    knots_v.append(speed)
    speeds = np.interp(times, knots_t, knots_v)
    decel = [0.5 if any(t0 < t <= t1 for t0, t1 in drops) else 0.0 for t in times]
    return make_points(times, speed_mph=speeds, g_force_longitudinal=decel, **extra)


class TestWindow:
    def test_window_start_walks_back(self, make_points):
        points = make_points(np.round(np.arange(0, 5.01, 0.5), 1))
        assert points[window_start(points, 10, 1.5)].time == 3.5

    def test_window_start_stops_at_zero(self, make_points):
        points = make_points([0.0, 0.5, 1.0])
        assert window_start(points, 2, 1.5) == 0

    def test_window_stats(self, make_points):
        points = make_points(
            [0.0, 0.1, 0.2, 0.3],
            speed_mph=[40, 38, 36, 34],
            g_force_longitudinal=[-0.1, 0.2, 0.4, 0.6],
            g_force_lateral=[0.3, -0.3, 0.1, 0.0],
        )
        stats = compute_window_stats(points, 0, 3, sustain_threshold=0.245)

        assert stats.max_decel_g == 0.6
        assert stats.avg_decel_g == pytest.approx(0.4)
        assert stats.max_lateral_g == 0.3
        assert stats.avg_lateral_g == pytest.approx(0.175)
        assert stats.sustained_lateral_ms == pytest.approx(100.0)
        assert stats.speed_drop == 6


class TestBrakingIncidents:
    def test_hard_braking_scenario(self, braking_points):
        """30 -> 18 mph over 2s with a 0.5g peak is one critical braking incident."""
        incidents = detect_incidents(braking_points)

        assert len(incidents) == 1
        assert incidents[0].type == "braking"
        assert incidents[0].severity == "critical"
        assert incidents[0].speed_drop < 15
        assert incidents[0].g_force == 0.5

    def test_windows_one_second_apart_emit_one(self, make_points):
        points = _drive(make_points, [(4.0, 5.0), (5.0, 6.0)])
        incidents = detect_incidents(points)

        assert len(incidents) == 1
        assert incidents[0].type == "braking"

    def test_windows_six_seconds_apart_emit_two(self, make_points):
        points = _drive(make_points, [(4.0, 5.0), (10.0, 11.0)])
        incidents = detect_incidents(points)

        assert len(incidents) == 2
        assert incidents[1].time - incidents[0].time >= 3.0

    def test_low_speed_braking_ignored(self, make_points):
        points = _drive(make_points, [(4.0, 5.0)], start_speed=18.0)
        assert detect_incidents(points) == []

    def test_speed_drop_without_decel_ignored(self, make_points):
        times = np.round(np.arange(0.0, 5.05, 0.1), 1)
        speeds = np.interp(times, [0, 2, 3, 5], [40, 40, 28, 28])
        points = make_points(times, speed_mph=speeds, g_force_longitudinal=0.1)
        assert detect_incidents(points) == []

    def test_geolocation(self, make_points):
        points = _drive(make_points, [(4.0, 5.0)], latitude=37.5, longitude=-122.0,
                        assist_mode="FSD")
        incident = detect_incidents(points)[0]

        assert incident.latitude == 37.5
        assert incident.longitude == -122.0
        assert incident.assist_mode == "FSD"
        assert incident.speed == 40.0

    def test_missing_gps_gives_none(self, make_points):
        incident = detect_incidents(_drive(make_points, [(4.0, 5.0)]))[0]
        assert incident.latitude is None
        assert incident.longitude is None


class TestSwerveIncidents:
    def _swerve(self, make_points, lateral_g, speed=40.0, **extra):
        times = np.round(np.arange(0.0, 6.05, 0.1), 1)
        lateral = [lateral_g if 2.0 <= t <= 3.0 else 0.0 for t in times]
        return make_points(times, speed_mph=speed, g_force_lateral=lateral, **extra)

    @pytest.mark.parametrize("lateral_g,severity", [
        (0.37, "info"),
        (0.42, "warning"),
        (-0.5, "critical"),
    ])
    def test_swerve_severity(self, make_points, lateral_g, severity):
        incidents = detect_incidents(self._swerve(make_points, lateral_g))

        assert len(incidents) == 1
        assert incidents[0].type == "swerve"
        assert incidents[0].severity == severity

    def test_short_spike_is_not_a_swerve(self, make_points):
        times = np.round(np.arange(0.0, 6.05, 0.1), 1)
        lateral = [0.6 if t in (2.0, 2.1) else 0.0 for t in times]
        points = make_points(times, speed_mph=40.0, g_force_lateral=lateral)
        assert detect_incidents(points) == []

    def test_slow_swerve_ignored(self, make_points):
        assert detect_incidents(self._swerve(make_points, 0.5, speed=25.0)) == []


class TestCombinedIncidents:
    def test_braking_while_swerving_is_critical(self, make_points):
        times = np.round(np.arange(0.0, 8.05, 0.1), 1)
        speeds = np.interp(times, [0, 4, 5, 8], [45, 45, 36, 36])
        decel = [0.4 if 4.0 < t <= 5.0 else 0.0 for t in times]
        # Sustained 0.3g lateral, peaking past the swerve threshold only as
        # the speed drop qualifies
        lateral = [0.37 if 4.9 <= t <= 5.0 else 0.3 if 3.5 <= t <= 5.0 else 0.0 for t in times]
        points = make_points(times, speed_mph=speeds, g_force_longitudinal=decel,
                             g_force_lateral=lateral)

        incidents = detect_incidents(points)

        assert len(incidents) == 1
        assert incidents[0].type == "combined"
        assert incidents[0].severity == "critical"


class TestDetectIncidents:
    def test_short_input(self, make_points):
        assert detect_incidents([]) == []
        assert detect_incidents(make_points([0], speed_mph=50)) == []

    def test_window_too_short(self, make_points):
        """Two samples 0.2s apart never form a usable window."""
        points = make_points([0.0, 0.2], speed_mph=[40, 20], g_force_longitudinal=0.8)
        assert detect_incidents(points) == []

    def test_constant_noise_has_no_incidents(self, make_points):
        times = np.round(np.arange(0.0, 10.05, 0.1), 1)
        points = make_points(times, speed_mph=40.0, g_force_longitudinal=0.1,
                             g_force_lateral=0.1)
        assert detect_incidents(points) == []

    def test_idempotent(self, braking_points):
        assert detect_incidents(braking_points) == detect_incidents(braking_points)


class TestFilterBySeverity:
    def test_filters(self, make_points):
        points = _drive(make_points, [(4.0, 5.0)])
        incidents = detect_incidents(points)

        assert filter_by_severity(incidents, "critical") == incidents
        assert filter_by_severity(incidents, "info") == incidents

    def test_unknown_severity_keeps_all(self, braking_points):
        incidents = detect_incidents(braking_points)
        assert filter_by_severity(incidents, "bogus") == incidents
