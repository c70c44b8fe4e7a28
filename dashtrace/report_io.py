"""Analysis report export and import.

Reports are stored as protobuf text format (a google.protobuf.Struct) so
detection results can be inspected or re-rendered offline without
re-running the analysis. The point series itself is not stored.
"""

import dataclasses
import sys
import time
from typing import Any, Dict, Optional

from google.protobuf import json_format, text_format
from google.protobuf.struct_pb2 import Struct

from .models import (
    AnalysisResult,
    Anomaly,
    AnomalySet,
    AssistEvent,
    HardEvent,
    HardEvents,
    Incident,
    NearMiss,
    SmoothnessScore,
    TripStats,
)

# Version string for report files
REPORT_VERSION = "1.0.0"


def _trip_stats_to_dict(stats: Optional[TripStats]) -> Optional[Dict[str, Any]]:
    if stats is None:
        return None
    return dataclasses.asdict(stats)


def _dict_to_trip_stats(data: Optional[Dict[str, Any]]) -> Optional[TripStats]:
    if not data:
        return None
    smoothness = data.get("smoothness")
    return TripStats(
        distance_miles=data["distance_miles"],
        distance_km=data["distance_km"],
        avg_speed_mph=data["avg_speed_mph"],
        max_speed_mph=data["max_speed_mph"],
        avg_speed_kph=data["avg_speed_kph"],
        max_speed_kph=data["max_speed_kph"],
        # Struct stores every number as a double
        assist_percent=int(data["assist_percent"]),
        smoothness=SmoothnessScore(**{k: int(v) for k, v in smoothness.items()}) if smoothness else None,
    )


def _dict_to_anomaly(data: Dict[str, Any]) -> Anomaly:
    return Anomaly(
        time=data["time"],
        value=data["value"],
        severity=int(data["severity"]),
        description=data["description"],
    )


def _as_lists(value: Any) -> Any:
    """Turn tuples into lists recursively; Struct only accepts lists."""
    if isinstance(value, dict):
        return {k: _as_lists(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_as_lists(v) for v in value]
    return value


def result_to_dict(result: AnalysisResult) -> Dict[str, Any]:
    """Convert an AnalysisResult (minus the point series) to plain data."""
    series = result.series
    return _as_lists({
        "version": REPORT_VERSION,
        "point_count": len(series) if series is not None else 0,
        "start_time": series.start_time if series is not None else None,
        "end_time": series.end_time if series is not None else None,
        "trip_stats": _trip_stats_to_dict(result.trip_stats),
        "anomalies": dataclasses.asdict(result.anomalies),
        "hard_events": dataclasses.asdict(result.hard_events),
        "incidents": [dataclasses.asdict(i) for i in result.incidents],
        "near_misses": [dataclasses.asdict(nm) for nm in result.near_misses],
        "assist_events": [dataclasses.asdict(e) for e in result.assist_events],
    })


def dict_to_result(data: Dict[str, Any]) -> AnalysisResult:
    """Rebuild an AnalysisResult from ``result_to_dict`` output."""
    anomalies = data.get("anomalies") or {}
    hard_events = data.get("hard_events") or {}
    return AnalysisResult(
        series=None,
        trip_stats=_dict_to_trip_stats(data.get("trip_stats")),
        anomalies=AnomalySet(
            speed=tuple(_dict_to_anomaly(a) for a in anomalies.get("speed", [])),
            gforce=tuple(_dict_to_anomaly(a) for a in anomalies.get("gforce", [])),
            steering=tuple(_dict_to_anomaly(a) for a in anomalies.get("steering", [])),
        ),
        hard_events=HardEvents(
            brake_events=tuple(HardEvent(**e) for e in hard_events.get("brake_events", [])),
            accel_events=tuple(HardEvent(**e) for e in hard_events.get("accel_events", [])),
        ),
        incidents=tuple(Incident(**i) for i in data.get("incidents", [])),
        near_misses=tuple(NearMiss(**nm) for nm in data.get("near_misses", [])),
        assist_events=tuple(AssistEvent(**e) for e in data.get("assist_events", [])),
    )


def result_to_proto(result: AnalysisResult) -> Struct:
    report = Struct()
    json_format.ParseDict(result_to_dict(result), report)
    return report


def export_report(
    result: AnalysisResult,
    output_path: str,
    source_path: str = "",
    verbose: bool = True,
) -> None:
    """
    Export an analysis report to a text-format protobuf file.

    Args:
        result: Analysis snapshot to export
        output_path: Path to the output file
        source_path: Telemetry file the analysis was computed from
        verbose: Whether to print a confirmation message
    """
    report = result_to_proto(result)
    report.update({
        "source_path": source_path,
        "created_timestamp": time.time(),
    })

    with open(output_path, "w") as f:
        f.write(text_format.MessageToString(report))

    if verbose:
        print(f"Report exported to: {output_path}", file=sys.stderr)


def read_report(input_path: str) -> Dict[str, Any]:
    """Read a report file into plain data, including metadata fields."""
    with open(input_path, "r") as f:
        content = f.read()

    report = Struct()
    try:
        text_format.Parse(content, report)
    except text_format.ParseError as e:
        raise ValueError(f"{input_path} is not a valid report: {e}")
    return json_format.MessageToDict(report)


def import_report(input_path: str) -> AnalysisResult:
    """
    Import an analysis report.

    Returns:
        AnalysisResult without a point series
    """
    return dict_to_result(read_report(input_path))
