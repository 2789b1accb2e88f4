"""
Replay engine configuration and the commanded-motion store.

Two configuration sources are involved:
    - ReplayConfig: static engine settings loaded once from YAML
      (capture locations, crop window, thresholds, transform constants).
    - MotionConfigStore: the process-wide commanded motion (enable flag,
      debug logging, speed, bearing) that an external process rewrites
      periodically as JSON. The engine re-reads it about once per second.
"""

import json
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from motion_replay.log import set_debug_logging
from motion_replay.utils.angles import wrap_heading_deg

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "replay_config.yaml"
DEFAULT_MOTION_CONFIG_PATH = "/data/local/tmp/portal_config.json"


def _optional_int(value: Any) -> Optional[int]:
    return None if value is None else int(value)


@dataclass(frozen=True)
class ReplayConfig:
    """
    Static replay engine settings.

    Attributes:
        idle_capture_path: Capture recorded while stationary.
        moving_capture_path: Capture recorded while walking along
                             reference_heading_deg.
        moving_crop_start_ms: Crop prefix of the walking capture (ms).
        moving_crop_end_ms: Crop suffix of the walking capture (ms), or None.
        idle_crop_start_ms: Crop prefix of the idle capture (ms).
        idle_crop_end_ms: Crop suffix of the idle capture (ms), or None.
        speed_threshold_mps: Commanded speed above which "moving" plays.
        step_sensor_type: Sensor type of the cumulative step counter.
        config_refresh_interval_ms: Minimum time between motion refreshes.
        reference_heading_deg: Heading the walking capture was recorded along.
        jitter_period_ms: Period of the anti-fingerprint amplitude oscillation.
        jitter_depth: Relative depth of that oscillation.
        motion_config_path: JSON file holding the commanded motion.
    """

    idle_capture_path: str = "/data/local/tmp/idle.json"
    moving_capture_path: str = "/data/local/tmp/walking.json"
    moving_crop_start_ms: int = 0
    moving_crop_end_ms: Optional[int] = 60000
    idle_crop_start_ms: int = 0
    idle_crop_end_ms: Optional[int] = None
    speed_threshold_mps: float = 0.5
    step_sensor_type: int = 19
    config_refresh_interval_ms: int = 1000
    reference_heading_deg: float = 180.0
    jitter_period_ms: int = 10000
    jitter_depth: float = 0.02
    motion_config_path: str = DEFAULT_MOTION_CONFIG_PATH

    def __post_init__(self) -> None:
        if self.speed_threshold_mps < 0:
            raise ValueError(
                f"speed_threshold_mps must be non-negative, got {self.speed_threshold_mps}"
            )
        if self.jitter_period_ms <= 0:
            raise ValueError(f"jitter_period_ms must be positive, got {self.jitter_period_ms}")
        if not 0.0 <= self.jitter_depth < 1.0:
            raise ValueError(f"jitter_depth must be in [0, 1), got {self.jitter_depth}")
        if self.config_refresh_interval_ms < 0:
            raise ValueError(
                f"config_refresh_interval_ms must be non-negative, "
                f"got {self.config_refresh_interval_ms}"
            )

    @classmethod
    def from_dict(cls, config: Mapping[str, Any]) -> "ReplayConfig":
        """Build from the sectioned YAML layout (captures/replay/transform/motion)."""
        captures = config.get("captures", {}) or {}
        replay = config.get("replay", {}) or {}
        transform = config.get("transform", {}) or {}
        motion = config.get("motion", {}) or {}
        idle = captures.get("idle", {}) or {}
        moving = captures.get("moving", {}) or {}

        defaults = cls()
        return cls(
            idle_capture_path=str(idle.get("path", defaults.idle_capture_path)),
            moving_capture_path=str(moving.get("path", defaults.moving_capture_path)),
            moving_crop_start_ms=int(moving.get("crop_start_ms", defaults.moving_crop_start_ms)),
            moving_crop_end_ms=_optional_int(
                moving.get("crop_end_ms", defaults.moving_crop_end_ms)
            ),
            idle_crop_start_ms=int(idle.get("crop_start_ms", defaults.idle_crop_start_ms)),
            idle_crop_end_ms=_optional_int(
                idle.get("crop_end_ms", defaults.idle_crop_end_ms)
            ),
            speed_threshold_mps=float(
                replay.get("speed_threshold_mps", defaults.speed_threshold_mps)
            ),
            step_sensor_type=int(replay.get("step_sensor_type", defaults.step_sensor_type)),
            config_refresh_interval_ms=int(
                replay.get("config_refresh_interval_ms", defaults.config_refresh_interval_ms)
            ),
            reference_heading_deg=float(
                transform.get("reference_heading_deg", defaults.reference_heading_deg)
            ),
            jitter_period_ms=int(transform.get("jitter_period_ms", defaults.jitter_period_ms)),
            jitter_depth=float(transform.get("jitter_depth", defaults.jitter_depth)),
            motion_config_path=str(motion.get("path", defaults.motion_config_path)),
        )


def load_config(config_path: Optional[Union[str, Path]] = None) -> ReplayConfig:
    """Load configuration from YAML file or use defaults."""
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    else:
        config_path = Path(config_path)

    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}
        logger.info(f"Loaded configuration from {config_path}")
        return ReplayConfig.from_dict(config)

    logger.warning(f"Config file not found at {config_path}, using defaults")
    return ReplayConfig()


@dataclass(frozen=True)
class CommandedMotion:
    """
    Commanded motion supplied by the location override.

    Attributes:
        enabled: Whether sensor replay should replace real readings.
        debug_log: Whether verbose logging is requested.
        speed_mps: Commanded speed, >= 0.
        heading_deg: Commanded compass bearing in [0, 360).
    """

    enabled: bool = False
    debug_log: bool = False
    speed_mps: float = 0.0
    heading_deg: float = 0.0


def _as_float(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def parse_motion(document: Mapping[str, Any]) -> CommandedMotion:
    """
    Commanded motion from a decoded motion config.

    Missing or non-numeric entries read as false / 0.0.

    Example:
        >>> parse_motion({"enable": True, "speed": 1.4, "bearing": -90})
        CommandedMotion(enabled=True, debug_log=False, speed_mps=1.4, heading_deg=270.0)
    """
    return CommandedMotion(
        enabled=document.get("enable") is True,
        debug_log=document.get("debug_log") is True,
        speed_mps=max(0.0, _as_float(document.get("speed", 0.0))),
        heading_deg=wrap_heading_deg(_as_float(document.get("bearing", 0.0))),
    )


class MotionConfigStore:
    """
    Cached view of the commanded-motion JSON file.

    refresh() re-reads the file. When it is missing, unreadable or malformed
    the failure is logged and the previously read motion stays in effect.

    Example:
        >>> store = MotionConfigStore("/data/local/tmp/portal_config.json")
        >>> store.refresh()
        >>> store.motion.speed_mps
    """

    def __init__(
        self,
        path: Union[str, Path] = DEFAULT_MOTION_CONFIG_PATH,
        initial: Optional[CommandedMotion] = None,
    ):
        self.path = Path(path)
        self._motion = initial if initial is not None else CommandedMotion()
        self._lock = threading.Lock()

    @property
    def motion(self) -> CommandedMotion:
        return self._motion

    @property
    def enabled(self) -> bool:
        return self._motion.enabled

    def update(self, motion: CommandedMotion) -> None:
        """Replace the cached motion, applying the debug logging switch."""
        with self._lock:
            previous = self._motion
            self._motion = motion
        if motion.enabled != previous.enabled:
            logger.debug(f"Sensor replay enable changed to {motion.enabled}")
        if motion.debug_log != previous.debug_log:
            set_debug_logging(motion.debug_log)

    def refresh(self) -> CommandedMotion:
        """Re-read the motion file. Returns the motion now in effect."""
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                document: Dict[str, Any] = json.load(f)
        except OSError as e:
            logger.error(f"Failed to open motion config {self.path}: {e}")
            return self._motion
        except json.JSONDecodeError as e:
            logger.warning(f"Malformed motion config {self.path}: {e}")
            return self._motion

        if not isinstance(document, dict):
            logger.warning(f"Motion config {self.path} is not a JSON object")
            return self._motion

        self.update(parse_motion(document))
        return self._motion
