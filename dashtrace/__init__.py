"""Dashtrace - Detect driving events in dashcam telemetry."""

from .models import (
    TelemetryPoint,
    PointSeries,
    Anomaly,
    AnomalySet,
    HardEvent,
    HardEvents,
    Incident,
    NearMiss,
    AssistEvent,
    SmoothnessScore,
    TripStats,
    AnalysisResult,
)
from .frames import FrameRecord, frame_from_dict, parse_clip_data, read_clips_json
from .config import DetectionConfig, load_config, save_config
from .lookup import find_nearest_index, point_at_time
from .sample_store import build_point_series, sample_points, frame_to_point
from .trip_stats import calculate_trip_stats, calculate_smoothness_score, haversine_distance
from .anomalies import detect_anomalies, anomaly_at_time
from .hard_events import detect_hard_events, hard_event_at_time
from .incidents import detect_incidents, filter_by_severity
from .near_miss import detect_near_misses, filter_near_misses
from .assist_events import detect_assist_events
from .session import analyze, analyze_clips, TelemetrySession
from .csv_writer import format_telemetry_csv, write_telemetry_csv, export_filename
from .csv_reader import read_telemetry_csv, parse_csv_content
from .report_io import export_report, import_report

__all__ = [
    # Models
    "TelemetryPoint",
    "PointSeries",
    "Anomaly",
    "AnomalySet",
    "HardEvent",
    "HardEvents",
    "Incident",
    "NearMiss",
    "AssistEvent",
    "SmoothnessScore",
    "TripStats",
    "AnalysisResult",
    # Input frames
    "FrameRecord",
    "frame_from_dict",
    "parse_clip_data",
    "read_clips_json",
    # Configuration
    "DetectionConfig",
    "load_config",
    "save_config",
    # Timeline
    "find_nearest_index",
    "point_at_time",
    "build_point_series",
    "sample_points",
    "frame_to_point",
    # Trip statistics
    "calculate_trip_stats",
    "calculate_smoothness_score",
    "haversine_distance",
    # Detectors
    "detect_anomalies",
    "anomaly_at_time",
    "detect_hard_events",
    "hard_event_at_time",
    "detect_incidents",
    "filter_by_severity",
    "detect_near_misses",
    "filter_near_misses",
    "detect_assist_events",
    # Analysis
    "analyze",
    "analyze_clips",
    "TelemetrySession",
    # CSV
    "format_telemetry_csv",
    "write_telemetry_csv",
    "export_filename",
    "read_telemetry_csv",
    "parse_csv_content",
    # Reports
    "export_report",
    "import_report",
]
