"""Data models for dashtrace."""

from dataclasses import dataclass, field
from functools import cached_property
from typing import Optional, Tuple

import numpy as np

from .lookup import find_nearest_index
from .numeric import round_half_up

ASSIST_NONE = "NONE"

# Incident / near-miss severities, lowest first
SEVERITY_INFO = "info"
SEVERITY_WARNING = "warning"
SEVERITY_CRITICAL = "critical"
SEVERITY_ORDER = {SEVERITY_INFO: 0, SEVERITY_WARNING: 1, SEVERITY_CRITICAL: 2}


@dataclass(frozen=True)
class TelemetryPoint:
    """A single analysis sample on the event timeline.

    g_force_longitudinal is positive when the vehicle decelerates.
    latitude/longitude of 0 mean no GPS fix.
    """

    time: float
    speed_mph: float = 0.0
    speed_kph: float = 0.0
    g_force_lateral: float = 0.0
    g_force_longitudinal: float = 0.0
    g_force_vertical: float = 0.0
    steering_angle_deg: float = 0.0
    assist_mode: str = ASSIST_NONE
    brake_applied: bool = False
    throttle: float = 0.0
    latitude: float = 0.0
    longitude: float = 0.0

    @property
    def has_valid_gps(self) -> bool:
        return bool(self.latitude) and bool(self.longitude)

    @property
    def assist_engaged(self) -> bool:
        return bool(self.assist_mode) and self.assist_mode != ASSIST_NONE


@dataclass(frozen=True)
class PointSeries:
    """Chronological, bounded-length point sequence for one event."""

    points: Tuple[TelemetryPoint, ...]
    start_time: float
    end_time: float

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    @cached_property
    def times(self) -> np.ndarray:
        """Point timestamps, built once per series."""
        return np.array([p.time for p in self.points], dtype=float)

    def point_at(self, time: float) -> Optional[TelemetryPoint]:
        """Point nearest to ``time``, or None for an empty series."""
        idx = find_nearest_index(self.times, time)
        if idx is None:
            return None
        return self.points[idx]

    def __len__(self) -> int:
        return len(self.points)


@dataclass(frozen=True)
class Anomaly:
    time: float
    value: float
    severity: int  # 1 (minor) .. 3 (major)
    description: str


@dataclass(frozen=True)
class AnomalySet:
    """Anomalies per telemetry channel."""

    speed: Tuple[Anomaly, ...] = ()
    gforce: Tuple[Anomaly, ...] = ()
    steering: Tuple[Anomaly, ...] = ()

    @property
    def total(self) -> int:
        return len(self.speed) + len(self.gforce) + len(self.steering)


@dataclass(frozen=True)
class HardEvent:
    time: float
    g_force: float  # Signed longitudinal g at the sample
    severity: float  # 0.0 (at threshold) .. 1.0


@dataclass(frozen=True)
class HardEvents:
    brake_events: Tuple[HardEvent, ...] = ()
    accel_events: Tuple[HardEvent, ...] = ()

    @property
    def total(self) -> int:
        return len(self.brake_events) + len(self.accel_events)


@dataclass(frozen=True)
class Incident:
    """A braking, swerve or combined incident.

    latitude/longitude are None when the trigger sample has no GPS fix.
    """

    time: float
    latitude: Optional[float]
    longitude: Optional[float]
    type: str  # "braking", "swerve" or "combined"
    severity: str
    speed_drop: float  # mph lost across the window
    g_force: float  # Peak deceleration in the window
    lateral_g: float  # Peak |lateral g| in the window
    speed: float  # mph at the start of the window
    assist_mode: str


@dataclass(frozen=True)
class NearMiss:
    time: float
    score: float  # 1.0 .. 10.0
    brake_g: float
    steering_rate: float  # Strongest nearby steering rate in deg/s, 0 if none
    speed: float
    severity: str
    has_evasive_steering: bool = False


@dataclass(frozen=True)
class AssistEvent:
    time: float
    type: str  # "engaged", "disconnected" or "modeChange"
    from_mode: str
    to_mode: str
    speed: float
    latitude: Optional[float] = None
    longitude: Optional[float] = None


@dataclass(frozen=True)
class SmoothnessScore:
    """0-100 scores, higher is smoother."""

    overall: int
    steering: int
    accel: int
    lateral: int


@dataclass(frozen=True)
class TripStats:
    distance_miles: float
    distance_km: float
    avg_speed_mph: float
    max_speed_mph: float
    avg_speed_kph: float
    max_speed_kph: float
    assist_percent: int
    smoothness: Optional[SmoothnessScore] = None


@dataclass(frozen=True)
class AnalysisResult:
    """Snapshot of everything derived from one loaded event."""

    series: Optional[PointSeries] = None
    trip_stats: Optional[TripStats] = None
    anomalies: AnomalySet = field(default_factory=AnomalySet)
    hard_events: HardEvents = field(default_factory=HardEvents)
    incidents: Tuple[Incident, ...] = ()
    near_misses: Tuple[NearMiss, ...] = ()
    assist_events: Tuple[AssistEvent, ...] = ()

    @classmethod
    def empty(cls) -> "AnalysisResult":
        return cls()

    @property
    def points(self) -> Tuple[TelemetryPoint, ...]:
        return self.series.points if self.series is not None else ()

    def coverage_percent(self, total_duration: float) -> int:
        """Share of the event duration covered by telemetry, in percent."""
        if self.series is None or total_duration <= 0:
            return 0
        return int(round_half_up(self.series.duration / total_duration * 100))
