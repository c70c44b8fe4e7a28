"""CSV export of raw telemetry frames.

One row per decoded frame (not the sampled analysis points), in clip
order, with fixed decimal formatting per column.
"""

import csv
import io
import re
import sys
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Mapping, Optional, Sequence

from .frames import FrameRecord
from .sample_store import CLIP_DURATION, frame_time

CSV_HEADER = [
    "timestamp",
    "speed_mph",
    "speed_kph",
    "latitude",
    "longitude",
    "heading_deg",
    "g_force_x",
    "g_force_y",
    "steering_angle",
    "throttle",
    "brake",
    "turn_signal",
    "gear",
    "autopilot_state",
]


def _fixed(value: float, digits: int) -> str:
    """Fixed-point text with exact ties rounded away from zero (0.125 -> 0.13).

    Decimal(float) is exact, so ties are real binary ties. Negative zero
    prints as 0.
    """
    quantized = Decimal(value or 0.0).quantize(Decimal(1).scaleb(-digits), rounding=ROUND_HALF_UP)
    return f"{quantized:f}"


def format_frame_row(frame: FrameRecord, timestamp: float) -> List[str]:
    """Format one frame as a list of CSV cells in CSV_HEADER order."""
    return [
        _fixed(timestamp, 3),
        _fixed(frame.speed_mph, 2),
        _fixed(frame.speed_kph, 2),
        _fixed(frame.latitude_deg, 6),
        _fixed(frame.longitude_deg, 6),
        _fixed(frame.heading_deg, 2),
        _fixed(frame.g_force_x, 4),
        _fixed(frame.g_force_y, 4),
        _fixed(frame.steering_wheel_angle, 2),
        _fixed(frame.accelerator_pedal_position, 3),
        "1" if frame.brake_applied else "0",
        frame.turn_signal_name or "NONE",
        frame.gear_name or "D",
        frame.autopilot_name or "NONE",
    ]


def format_telemetry_csv(
    clips: Mapping[int, Sequence[FrameRecord]],
    clip_duration: float = CLIP_DURATION,
) -> str:
    """
    Format every raw frame of every clip as CSV content.

    Args:
        clips: Mapping of clip index to decoded frames
        clip_duration: Nominal clip length used for timestamps

    Returns:
        CSV content as a string; empty if there are no frames
    """
    output = io.StringIO(newline='')
    writer = csv.writer(output, lineterminator='\n')

    rows = 0
    for clip_index in sorted(clips):
        frames = clips[clip_index]
        frame_count = len(frames)
        for i, frame in enumerate(frames):
            if rows == 0:
                writer.writerow(CSV_HEADER)
            writer.writerow(format_frame_row(frame, frame_time(clip_index, i, frame_count, clip_duration)))
            rows += 1

    return output.getvalue()


def export_filename(event_timestamp: Optional[str] = None) -> str:
    """
    Build an export filename from an ISO event timestamp.

    "2025-12-30T10:59:00.000Z" becomes "telemetry_2025-12-30_10-59-00.csv".
    Without a timestamp the current time is used.
    """
    if not event_timestamp:
        event_timestamp = datetime.now().strftime("%Y-%m-%dT%H:%M:%S")

    formatted = event_timestamp.replace("T", "_", 1).replace(":", "-")
    formatted = re.sub(r"\.\d{3}Z?$", "", formatted)
    formatted = re.sub(r"Z$", "", formatted)
    return f"telemetry_{formatted}.csv"


def write_telemetry_csv(
    clips: Mapping[int, Sequence[FrameRecord]],
    output_path: str,
) -> int:
    """
    Write the raw frame CSV to a file.

    Returns:
        Number of data rows written
    """
    content = format_telemetry_csv(clips)
    rows = max(0, content.count("\n") - 1)
    with open(output_path, "w", newline='') as f:
        f.write(content)
    print(f"Exported {rows} telemetry rows to {output_path}", file=sys.stderr)
    return rows
