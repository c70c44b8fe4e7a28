"""Detection thresholds.

All detectors take a DetectionConfig explicitly. The config is immutable;
the ``with_*`` helpers return an updated copy. Persisting thresholds is
up to the caller, ``load_config``/``save_config`` cover the common case of
a JSON file.
"""

import dataclasses
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetectionConfig:
    """Thresholds for every detector.

    Longitudinal g is positive while braking, so the hard brake threshold
    is positive and the hard accel threshold negative.
    """

    # Hard events
    hard_brake_threshold: float = 0.4  # g
    hard_accel_threshold: float = -0.3  # g
    hard_brake_span: float = 0.4  # g above threshold for severity 1.0
    hard_accel_span: float = 0.3
    hard_event_cooldown: float = 2.0  # s

    # Anomalies
    anomalies_enabled: bool = True
    speed_change_rate: float = 10.0  # mph/s
    gforce_spike: float = 0.3  # g
    steering_rate: float = 30.0  # deg/s
    gforce_anomaly_cooldown: float = 2.0  # s
    steering_anomaly_cooldown: float = 1.0  # s

    # Incidents
    incident_window: float = 1.5  # s
    incident_min_window: float = 0.3  # s
    incident_cooldown: float = 3.0  # s
    braking_min_speed: float = 20.0  # mph
    braking_min_speed_drop: float = 8.0  # mph
    braking_avg_decel: float = 0.35  # g
    braking_peak_decel: float = 0.42  # g
    swerve_min_speed: float = 30.0  # mph
    swerve_lateral_g: float = 0.35  # g
    swerve_sustained_ms: float = 300.0
    swerve_sustain_ratio: float = 0.7

    # Near misses
    near_miss_brake_g: float = 0.25  # g
    near_miss_steering_rate: float = 20.0  # deg/s
    near_miss_min_speed: float = 5.0  # mph
    near_miss_window: float = 2.0  # s
    near_miss_min_score: float = 3.0

    # Pairs further apart than this are treated as a gap (e.g. after a seek)
    max_rate_gap: float = 10.0  # s

    def with_hard_brake_threshold(self, threshold: float) -> "DetectionConfig":
        """Return a copy with a new brake threshold; non-positive values are ignored."""
        if threshold > 0:
            return dataclasses.replace(self, hard_brake_threshold=threshold)
        return self

    def with_hard_accel_threshold(self, threshold: float) -> "DetectionConfig":
        """Return a copy with a new accel threshold; non-negative values are ignored."""
        if threshold < 0:
            return dataclasses.replace(self, hard_accel_threshold=threshold)
        return self

    def with_anomalies_enabled(self, enabled: bool) -> "DetectionConfig":
        return dataclasses.replace(self, anomalies_enabled=bool(enabled))

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)


_FIELD_NAMES = frozenset(f.name for f in dataclasses.fields(DetectionConfig))


def config_from_dict(values: Dict[str, Any]) -> DetectionConfig:
    """
    Build a config from stored values.

    Unknown keys are ignored with a warning. Thresholds with the wrong sign
    keep their default, as the setters do.

    Raises:
        ValueError: If a value cannot be converted to the field's type
    """
    config = DetectionConfig()
    updates: Dict[str, Any] = {}

    for key, value in values.items():
        if key not in _FIELD_NAMES:
            logger.warning("Ignoring unknown config key %r", key)
            continue
        if key == "anomalies_enabled":
            updates[key] = value if isinstance(value, bool) else str(value).lower() == "true"
            continue
        try:
            updates[key] = float(value)
        except (TypeError, ValueError):
            raise ValueError(f"Config value for {key!r} must be numeric, got {value!r}")

    brake = updates.pop("hard_brake_threshold", None)
    accel = updates.pop("hard_accel_threshold", None)
    config = dataclasses.replace(config, **updates)
    if brake is not None:
        config = config.with_hard_brake_threshold(brake)
    if accel is not None:
        config = config.with_hard_accel_threshold(accel)
    return config


def load_config(config_filename: str) -> DetectionConfig:
    """Read a DetectionConfig from a JSON file."""
    with open(config_filename, "r") as f:
        try:
            values = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"{config_filename} is not valid JSON: {e}")
    if not isinstance(values, dict):
        raise ValueError(f"{config_filename} must contain a JSON object")
    return config_from_dict(values)


def save_config(config: DetectionConfig, output_path: str) -> None:
    """Write a DetectionConfig to a JSON file."""
    with open(output_path, "w") as f:
        json.dump(config.to_dict(), f, indent=2, sort_keys=True)
        f.write("\n")
