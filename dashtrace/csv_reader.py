"""CSV parsing for exported telemetry files.

Reads files written by csv_writer back into per-clip frame records so an
export can be analyzed again without the original video.
"""

import csv
import io
import math
from typing import Dict, List

from .csv_writer import CSV_HEADER
from .frames import FrameRecord
from .sample_store import CLIP_DURATION


def read_telemetry_csv(csv_filename: str, clip_duration: float = CLIP_DURATION) -> Dict[int, List[FrameRecord]]:
    """
    Read a telemetry CSV file.

    Args:
        csv_filename: Path to the CSV file
        clip_duration: Nominal clip length used to regroup rows into clips

    Returns:
        Mapping of clip index to frame records
    """
    with open(csv_filename, "r", newline='') as csvfile:
        return _parse_csv_reader(csv.reader(csvfile), clip_duration)


def parse_csv_content(content: str, clip_duration: float = CLIP_DURATION) -> Dict[int, List[FrameRecord]]:
    """Parse telemetry CSV content from a string."""
    return _parse_csv_reader(csv.reader(io.StringIO(content)), clip_duration)


def _parse_float(value: str, column: str, line: int) -> float:
    try:
        return float(value) if value else 0.0
    except ValueError:
        raise ValueError(f"Line {line}: invalid {column} value {value!r}")


def _parse_csv_reader(reader, clip_duration: float) -> Dict[int, List[FrameRecord]]:
    """Parse rows from a csv.reader object.

    Rows are grouped into clips by timestamp (clip = floor(t / clip_duration)).
    """
    clips: Dict[int, List[FrameRecord]] = {}
    columns = None

    for line, row in enumerate(reader, start=1):
        if not row:
            continue

        if columns is None:
            header = [cell.strip() for cell in row]
            missing = [name for name in CSV_HEADER if name not in header]
            if missing:
                raise ValueError(f"Missing CSV columns: {', '.join(missing)}")
            columns = {name: header.index(name) for name in CSV_HEADER}
            continue

        if len(row) < len(columns):
            raise ValueError(f"Line {line}: expected {len(columns)} columns, got {len(row)}")

        def cell(name: str) -> str:
            return row[columns[name]].strip()

        timestamp = _parse_float(cell("timestamp"), "timestamp", line)
        frame = FrameRecord(
            speed_mph=_parse_float(cell("speed_mph"), "speed_mph", line),
            speed_kph=_parse_float(cell("speed_kph"), "speed_kph", line),
            latitude_deg=_parse_float(cell("latitude"), "latitude", line),
            longitude_deg=_parse_float(cell("longitude"), "longitude", line),
            heading_deg=_parse_float(cell("heading_deg"), "heading_deg", line),
            g_force_x=_parse_float(cell("g_force_x"), "g_force_x", line),
            g_force_y=_parse_float(cell("g_force_y"), "g_force_y", line),
            steering_wheel_angle=_parse_float(cell("steering_angle"), "steering_angle", line),
            accelerator_pedal_position=_parse_float(cell("throttle"), "throttle", line),
            brake_applied=cell("brake") == "1",
            turn_signal_name=cell("turn_signal") or "NONE",
            gear_name=cell("gear") or "D",
            autopilot_name=cell("autopilot_state") or "NONE",
        )
        clip_index = int(math.floor(timestamp / clip_duration))
        clips.setdefault(clip_index, []).append(frame)

    return clips
