"""Command-line interface for dashtrace.

Usage:
    dashtrace analyze <telemetry.json|telemetry.csv> [options]   # Detect driving events
    dashtrace export <telemetry.json> [-o out.csv]               # Raw frames to CSV
    dashtrace report <report.textproto>                          # Summarize a saved report
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from .config import DetectionConfig, load_config, save_config
from .csv_reader import read_telemetry_csv
from .csv_writer import export_filename, write_telemetry_csv
from .frames import FrameRecord, read_clips_json
from .incidents import filter_by_severity
from .models import SEVERITY_ORDER, AnalysisResult
from .report_io import export_report, import_report
from .session import TelemetrySession


def load_clips(input_path: str) -> Dict[int, List[FrameRecord]]:
    """Load clips from decoder JSON or from a previously exported CSV."""
    if Path(input_path).suffix.lower() == ".csv":
        return read_telemetry_csv(input_path)
    return read_clips_json(input_path)


def build_config(args: argparse.Namespace) -> DetectionConfig:
    """Config file first, then command-line overrides."""
    config = load_config(args.config) if args.config else DetectionConfig()

    if args.hard_brake_threshold is not None:
        updated = config.with_hard_brake_threshold(args.hard_brake_threshold)
        if updated is config:
            print(f"Warning: ignoring hard brake threshold {args.hard_brake_threshold} "
                  f"(must be positive)", file=sys.stderr)
        config = updated
    if args.hard_accel_threshold is not None:
        updated = config.with_hard_accel_threshold(args.hard_accel_threshold)
        if updated is config:
            print(f"Warning: ignoring hard accel threshold {args.hard_accel_threshold} "
                  f"(must be negative)", file=sys.stderr)
        config = updated
    if args.no_anomalies:
        config = config.with_anomalies_enabled(False)
    return config


def _smoothness_label(score: int) -> str:
    if score >= 80:
        return "smooth"
    if score >= 50:
        return "moderate"
    return "rough"


def format_summary(result: AnalysisResult, min_severity: str = "info") -> str:
    """Human-readable summary of an analysis result."""
    lines = []

    if result.series is not None:
        series = result.series
        lines.append(f"Telemetry: {len(series)} points, "
                     f"{series.start_time:.1f}s - {series.end_time:.1f}s")

    stats = result.trip_stats
    if stats is not None:
        lines.append(f"Distance: {stats.distance_miles:.2f} mi ({stats.distance_km:.2f} km)")
        lines.append(f"Speed: avg {stats.avg_speed_mph:.1f} mph, max {stats.max_speed_mph:.1f} mph")
        lines.append(f"Assist engaged: {stats.assist_percent}%")
        if stats.smoothness is not None:
            s = stats.smoothness
            lines.append(
                f"Smoothness: {s.overall}/100 ({_smoothness_label(s.overall)}) "
                f"steering {s.steering}, accel {s.accel}, lateral {s.lateral}"
            )

    anomalies = result.anomalies
    lines.append(f"Anomalies: {len(anomalies.speed)} speed, {len(anomalies.gforce)} g-force, "
                 f"{len(anomalies.steering)} steering")

    hard = result.hard_events
    lines.append(f"Hard events: {len(hard.brake_events)} brake, {len(hard.accel_events)} accel")

    incidents = filter_by_severity(result.incidents, min_severity)
    lines.append(f"Incidents: {len(incidents)}")
    for inc in incidents:
        where = ""
        if inc.latitude is not None:
            where = f" at {inc.latitude:.5f},{inc.longitude:.5f}"
        lines.append(
            f"  {inc.time:8.2f}s  {inc.type:<8} {inc.severity:<8} "
            f"drop {inc.speed_drop:.1f} mph, decel {inc.g_force:.2f}g, "
            f"lateral {inc.lateral_g:.2f}g{where}"
        )

    lines.append(f"Near misses: {len(result.near_misses)}")
    for nm in result.near_misses:
        lines.append(
            f"  {nm.time:8.2f}s  score {nm.score:.1f} ({nm.severity}) "
            f"brake {nm.brake_g:.2f}g, steering {nm.steering_rate:.0f} deg/s"
        )

    lines.append(f"Assist transitions: {len(result.assist_events)}")
    for event in result.assist_events:
        lines.append(
            f"  {event.time:8.2f}s  {event.type:<12} {event.from_mode} -> {event.to_mode} "
            f"at {event.speed:.0f} mph"
        )

    return "\n".join(lines)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog='dashtrace',
        description='Detect driving events in dashcam telemetry.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Analyze decoder output
    dashtrace analyze event.json

    # Stricter braking threshold, save the report
    dashtrace analyze event.json --hard-brake-threshold 0.5 --report event.textproto

    # Export raw frames to CSV
    dashtrace export event.json --event-timestamp 2025-12-30T10:59:00
        """
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # 'analyze' subcommand
    analyze_parser = subparsers.add_parser(
        'analyze',
        help='Detect incidents, near misses and other events',
    )
    analyze_parser.add_argument('input', help='Decoder JSON or exported telemetry CSV')
    analyze_parser.add_argument('--config', help='JSON file with detection thresholds')
    analyze_parser.add_argument(
        '--hard-brake-threshold', type=float, default=None,
        help='Hard braking threshold in g, positive (default: 0.4)'
    )
    analyze_parser.add_argument(
        '--hard-accel-threshold', type=float, default=None,
        help='Hard acceleration threshold in g, negative (default: -0.3)'
    )
    analyze_parser.add_argument(
        '--no-anomalies', action='store_true',
        help='Skip anomaly detection'
    )
    analyze_parser.add_argument(
        '--min-severity', choices=list(SEVERITY_ORDER), default='info',
        help='Only list incidents at or above this severity (default: info)'
    )
    analyze_parser.add_argument('--report', help='Write a report file (protobuf text format)')
    analyze_parser.add_argument('--save-config', help='Write the effective thresholds to a JSON file')

    # 'export' subcommand
    export_parser = subparsers.add_parser(
        'export',
        help='Export every raw frame to CSV',
    )
    export_parser.add_argument('input', help='Decoder JSON file')
    export_parser.add_argument('-o', '--output', help='Output CSV file')
    export_parser.add_argument('--output-dir', default='.', help='Output directory')
    export_parser.add_argument(
        '--event-timestamp',
        help='ISO event timestamp used for the default filename'
    )

    # 'report' subcommand
    report_parser = subparsers.add_parser(
        'report',
        help='Summarize a previously exported report',
    )
    report_parser.add_argument('report_file', help='Report file')
    report_parser.add_argument('--min-severity', choices=list(SEVERITY_ORDER), default='info')

    return parser


def run_analyze_mode(args: argparse.Namespace) -> None:
    """Analyze a telemetry file and print the detected events."""
    config = build_config(args)
    clips = load_clips(args.input)

    session = TelemetrySession(config)
    result = session.load(clips)

    if result.series is None:
        print(f"Warning: no telemetry frames found in {args.input}", file=sys.stderr)

    print(format_summary(result, args.min_severity))

    if args.report:
        export_report(result, args.report, source_path=args.input)
    if args.save_config:
        save_config(config, args.save_config)
        print(f"Config saved to: {args.save_config}", file=sys.stderr)


def run_export_mode(args: argparse.Namespace) -> None:
    """Export raw frames as CSV."""
    clips = load_clips(args.input)
    output = args.output or str(Path(args.output_dir) / export_filename(args.event_timestamp))

    rows = write_telemetry_csv(clips, output)
    if rows == 0:
        print(f"Warning: no telemetry rows found in {args.input}", file=sys.stderr)


def run_report_mode(args: argparse.Namespace) -> None:
    """Print the summary stored in a report file."""
    result = import_report(args.report_file)
    print(format_summary(result, args.min_severity))


def main(argv: Optional[list] = None) -> None:
    """Main entry point."""
    argv = argv if argv is not None else sys.argv[1:]
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    try:
        if args.command == 'analyze':
            run_analyze_mode(args)
        elif args.command == 'export':
            run_export_mode(args)
        elif args.command == 'report':
            run_report_mode(args)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
