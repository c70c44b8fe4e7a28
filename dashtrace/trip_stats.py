"""Trip statistics: distance, speed profile, assist usage and smoothness."""

import math
from typing import Optional, Sequence, Tuple

import numpy as np

from .models import SmoothnessScore, TelemetryPoint, TripStats
from .numeric import clamp, round_half_up

EARTH_RADIUS_MILES = 3959.0
EARTH_RADIUS_KM = 6371.0

# Largest gap between consecutive samples still treated as continuous
MAX_RATE_GAP = 10.0

# Decay constants for std -> score, one per channel
STEERING_K = 30.0  # deg/s
ACCEL_K = 3.0  # mph/s
LATERAL_K = 0.15  # g/s

STEERING_WEIGHT = 0.25
ACCEL_WEIGHT = 0.35
LATERAL_WEIGHT = 0.40


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> Tuple[float, float]:
    """
    Great-circle distance between two coordinates.

    Returns:
        (miles, kilometers)
    """
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)

    a = (math.sin(d_lat / 2) ** 2
         + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2))
         * math.sin(d_lon / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_MILES * c, EARTH_RADIUS_KM * c


def total_distance(points: Sequence[TelemetryPoint]) -> Tuple[float, float]:
    """Sum the distance between consecutive points that both have a GPS fix."""
    miles = 0.0
    km = 0.0
    for prev, curr in zip(points, points[1:]):
        if not (prev.has_valid_gps and curr.has_valid_gps):
            continue
        d_miles, d_km = haversine_distance(
            prev.latitude, prev.longitude, curr.latitude, curr.longitude
        )
        miles += d_miles
        km += d_km
    return miles, km


def _speed_profile(speeds: Sequence[float]) -> Tuple[float, float]:
    """(avg, max) over strictly positive samples, (0, 0) if there are none."""
    moving = np.asarray([s for s in speeds if s > 0], dtype=float)
    if moving.size == 0:
        return 0.0, 0.0
    return float(moving.mean()), float(moving.max())


def std_to_score(std: float, k: float) -> float:
    """Map a standard deviation to 0-100 with exponential decay.

    std=0 gives 100, std=k about 37, std=3k about 5.
    """
    return 100.0 * math.exp(-std / k)


def calculate_smoothness_score(points: Sequence[TelemetryPoint]) -> Optional[SmoothnessScore]:
    """
    Score driving smoothness from the variability of rates of change.

    Rates are taken between consecutive samples for steering angle (deg/s),
    speed (mph/s) and longitudinal g (g/s). Lower spread gives a higher
    score.

    Returns:
        SmoothnessScore, or None if fewer than two usable sample pairs exist
    """
    steering_rates = []
    speed_rates = []
    g_rates = []

    for prev, curr in zip(points, points[1:]):
        dt = curr.time - prev.time
        if dt <= 0 or dt > MAX_RATE_GAP:
            continue
        steering_rates.append(abs(curr.steering_angle_deg - prev.steering_angle_deg) / dt)
        speed_rates.append(abs(curr.speed_mph - prev.speed_mph) / dt)
        g_rates.append(abs(curr.g_force_longitudinal - prev.g_force_longitudinal) / dt)

    if len(steering_rates) < 2:
        return None

    # Population standard deviation (ddof=0)
    steering_score = std_to_score(float(np.std(steering_rates)), STEERING_K)
    accel_score = std_to_score(float(np.std(speed_rates)), ACCEL_K)
    lateral_score = std_to_score(float(np.std(g_rates)), LATERAL_K)

    overall = round_half_up(
        steering_score * STEERING_WEIGHT
        + accel_score * ACCEL_WEIGHT
        + lateral_score * LATERAL_WEIGHT
    )

    return SmoothnessScore(
        overall=int(clamp(overall, 0, 100)),
        steering=int(round_half_up(steering_score)),
        accel=int(round_half_up(accel_score)),
        lateral=int(round_half_up(lateral_score)),
    )


def calculate_trip_stats(points: Sequence[TelemetryPoint]) -> Optional[TripStats]:
    """
    Aggregate statistics for a trip.

    Args:
        points: Time-sorted telemetry points

    Returns:
        TripStats, or None if fewer than two points are available
    """
    if len(points) < 2:
        return None

    distance_miles, distance_km = total_distance(points)
    avg_mph, max_mph = _speed_profile([p.speed_mph for p in points])
    avg_kph, max_kph = _speed_profile([p.speed_kph for p in points])

    engaged = sum(1 for p in points if p.assist_engaged)
    assist_percent = int(round_half_up(engaged / len(points) * 100))

    return TripStats(
        distance_miles=distance_miles,
        distance_km=distance_km,
        avg_speed_mph=avg_mph,
        max_speed_mph=max_mph,
        avg_speed_kph=avg_kph,
        max_speed_kph=max_kph,
        assist_percent=assist_percent,
        smoothness=calculate_smoothness_score(points),
    )
