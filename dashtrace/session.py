"""Run every detector over a loaded event.

``analyze`` is a pure function of (point series, config). TelemetrySession
keeps the currently loaded event and its latest result snapshot, and
recomputes everything when the event or a threshold changes.
"""

import logging
from typing import List, Mapping, Optional, Sequence

from .anomalies import detect_anomalies
from .assist_events import detect_assist_events
from .config import DetectionConfig
from .frames import FrameRecord
from .hard_events import detect_hard_events
from .incidents import detect_incidents
from .models import AnalysisResult, AnomalySet, NearMiss, PointSeries, TelemetryPoint
from .near_miss import detect_near_misses, filter_near_misses
from .sample_store import build_point_series
from .trip_stats import calculate_trip_stats

logger = logging.getLogger(__name__)


def analyze(series: Optional[PointSeries], config: Optional[DetectionConfig] = None) -> AnalysisResult:
    """
    Derive all event collections and trip statistics for a point series.

    Args:
        series: Output of build_point_series, or None for an empty event
        config: Detection thresholds

    Returns:
        AnalysisResult; empty collections when there is nothing to analyze
    """
    config = config or DetectionConfig()
    if series is None or not series.points:
        return AnalysisResult.empty()

    points = series.points
    anomalies = detect_anomalies(points, config) if config.anomalies_enabled else AnomalySet()

    result = AnalysisResult(
        series=series,
        trip_stats=calculate_trip_stats(points),
        anomalies=anomalies,
        hard_events=detect_hard_events(points, config),
        incidents=tuple(detect_incidents(points, config)),
        near_misses=tuple(detect_near_misses(points, config)),
        assist_events=tuple(detect_assist_events(points)),
    )
    logger.debug(
        "Analyzed %d points: %d anomalies, %d hard events, %d incidents, "
        "%d near misses, %d assist events",
        len(points), anomalies.total, result.hard_events.total,
        len(result.incidents), len(result.near_misses), len(result.assist_events),
    )
    return result


def analyze_clips(
    clips: Mapping[int, Sequence[FrameRecord]],
    config: Optional[DetectionConfig] = None,
) -> AnalysisResult:
    """Build the point series from raw clips and analyze it."""
    return analyze(build_point_series(clips), config)


class TelemetrySession:
    """
    Holds the loaded event and the latest analysis snapshot.

    Every change (load, clear, threshold update) replaces the snapshot as
    a whole; results are never patched incrementally.
    """

    def __init__(self, config: Optional[DetectionConfig] = None):
        self._config = config or DetectionConfig()
        self._series: Optional[PointSeries] = None
        self._result = AnalysisResult.empty()

    @property
    def config(self) -> DetectionConfig:
        return self._config

    @property
    def result(self) -> AnalysisResult:
        return self._result

    @property
    def is_loaded(self) -> bool:
        return self._series is not None

    def load(self, clips: Mapping[int, Sequence[FrameRecord]]) -> AnalysisResult:
        """Replace the loaded event with new clips and recompute."""
        self._series = build_point_series(clips)
        if self._series is None:
            logger.info("No telemetry frames in %d clip(s)", len(clips))
        return self._recompute()

    def clear(self) -> None:
        """Unload the event; every collection becomes empty."""
        self._series = None
        self._result = AnalysisResult.empty()

    def set_config(self, config: DetectionConfig) -> AnalysisResult:
        self._config = config
        return self._recompute()

    def set_hard_brake_threshold(self, threshold: float) -> bool:
        """Update the brake threshold; returns False (no-op) for non-positive values."""
        updated = self._config.with_hard_brake_threshold(threshold)
        if updated is self._config:
            return False
        self.set_config(updated)
        return True

    def set_hard_accel_threshold(self, threshold: float) -> bool:
        """Update the accel threshold; returns False (no-op) for non-negative values."""
        updated = self._config.with_hard_accel_threshold(threshold)
        if updated is self._config:
            return False
        self.set_config(updated)
        return True

    def set_anomalies_enabled(self, enabled: bool) -> None:
        self.set_config(self._config.with_anomalies_enabled(enabled))

    def point_at(self, time: float) -> Optional[TelemetryPoint]:
        """Loaded point nearest to ``time``, or None when nothing is loaded."""
        series = self._result.series
        return series.point_at(time) if series is not None else None

    def get_near_misses(self, min_score: float = 5.0) -> List[NearMiss]:
        return filter_near_misses(self._result.near_misses, min_score)

    def _recompute(self) -> AnalysisResult:
        self._result = analyze(self._series, self._config)
        return self._result
