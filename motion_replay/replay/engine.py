"""Sensor replay engine: the query entry point used by the hook layer.

For every intercepted sensor event the hook layer calls
``engine.query(sensor_type, speed_mps, heading_deg)`` and receives either a
replacement value array or an empty array meaning "pass the original reading
through unchanged". Nothing here raises on the query path: missing captures,
unknown sensor types and zero-length regimes all degrade to pass-through.
"""

import logging
import threading
import time
from pathlib import Path
from typing import Callable, Optional, Union

import numpy as np

from motion_replay.capture.ingest import load_regime_binding
from motion_replay.capture.types import RegimeBinding
from motion_replay.replay.config import MotionConfigStore, ReplayConfig, load_config
from motion_replay.replay.state import ReplayCursor, ReplayStateMachine
from motion_replay.replay.transform import is_vector_sensor, orient_vector

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def wall_clock_ms() -> int:
    """Current wall-clock time in integer milliseconds."""
    return int(time.time() * 1000)


def _pass_through() -> np.ndarray:
    return np.zeros(0, dtype=np.float64)


class SensorReplayEngine:
    """
    Replays recorded idle/walking captures as live sensor readings.

    Captures are ingested once, lazily on the first query or explicitly via
    initialize(). A failed ingestion is final for the engine's lifetime:
    every later query returns an empty array.

    Attributes:
        config: Static engine settings.
        clock: Zero-argument callable returning the time in milliseconds.
        motion_store: Optional commanded-motion store refreshed at most once
                      per config.config_refresh_interval_ms.
        cursor: Replay cursor (regime, regime start, committed steps).
        machine: Regime state machine, None until initialized.

    Example:
        >>> engine = SensorReplayEngine.from_config("config/replay_config.yaml")
        >>> values = engine.query(TYPE_ACCELEROMETER, speed_mps=1.3, heading_deg=90.0)
        >>> if values.size:
        ...     event_values[:3] = values[:3]
    """

    def __init__(
        self,
        config: Optional[ReplayConfig] = None,
        clock: Optional[Clock] = None,
        motion_store: Optional[MotionConfigStore] = None,
    ):
        self.config = config if config is not None else ReplayConfig()
        self.clock = clock if clock is not None else wall_clock_ms
        self.motion_store = motion_store
        self.cursor = ReplayCursor()
        self.machine: Optional[ReplayStateMachine] = None

        self._init_attempted = False
        self._lock = threading.Lock()

    @classmethod
    def from_config(
        cls,
        config_path: Optional[Union[str, Path]] = None,
        clock: Optional[Clock] = None,
    ) -> "SensorReplayEngine":
        """Engine plus motion store built from a YAML config file."""
        config = load_config(config_path)
        store = MotionConfigStore(config.motion_config_path)
        return cls(config=config, clock=clock, motion_store=store)

    @property
    def is_initialized(self) -> bool:
        return self.cursor.is_initialized

    def initialize(self) -> bool:
        """
        Ingest both captures from the configured locations.

        Only the first call does any work. Returns whether the engine is
        initialized.
        """
        with self._lock:
            if self._init_attempted:
                return self.cursor.is_initialized
            self._init_attempted = True

        config = self.config
        try:
            idle = load_regime_binding(
                config.idle_capture_path,
                config.idle_crop_start_ms,
                config.idle_crop_end_ms,
            )
            moving = load_regime_binding(
                config.moving_capture_path,
                config.moving_crop_start_ms,
                config.moving_crop_end_ms,
            )
        except FileNotFoundError as e:
            logger.error(f"Sensor captures not found, replay disabled: {e}")
            return False
        except (OSError, ValueError, ArithmeticError):
            logger.exception("Failed to load sensor captures, replay disabled")
            return False

        self.load_bindings(idle, moving)
        return True

    def load_bindings(self, idle: RegimeBinding, moving: RegimeBinding) -> None:
        """Initialize directly from already-built regime bindings."""
        machine = ReplayStateMachine(
            idle,
            moving,
            cursor=self.cursor,
            speed_threshold_mps=self.config.speed_threshold_mps,
            step_sensor_type=self.config.step_sensor_type,
        )
        machine.start(self.clock())
        with self._lock:
            self.machine = machine
            self._init_attempted = True
            self.cursor.is_initialized = True

        logger.info(
            f"Initialized sensor replay. Moving: {moving.duration_ms}ms, "
            f"Idle: {idle.duration_ms}ms"
        )

    def _refresh_motion_if_due(self, now_ms: int) -> None:
        with self._lock:
            elapsed = now_ms - self.cursor.last_config_refresh_ms
            if elapsed <= self.config.config_refresh_interval_ms:
                return
            self.cursor.last_config_refresh_ms = now_ms

        if self.motion_store is not None:
            self.motion_store.refresh()

    def query(
        self,
        sensor_type: int,
        speed_mps: float,
        heading_deg: float,
    ) -> np.ndarray:
        """
        Replacement values for one sensor event.

        Args:
            sensor_type: Android sensor type of the event.
            speed_mps: Commanded speed in m/s.
            heading_deg: Commanded compass heading in degrees.

        Returns:
            New float64 array of replacement values, or an empty array when
            the real reading should pass through (not initialized, sensor
            type not captured, zero-length regime).
        """
        if not self.cursor.is_initialized and not self.initialize():
            return _pass_through()

        machine = self.machine
        now_ms = self.clock()
        self._refresh_motion_if_due(now_ms)

        snapshot = machine.advance(speed_mps, now_ms)
        binding = machine.binding(snapshot.regime)
        if binding.duration_ms <= 0 or not binding.has_track(sensor_type):
            return _pass_through()

        if sensor_type == machine.step_sensor_type:
            return np.array([machine.step_count(snapshot, now_ms)], dtype=np.float64)

        track = binding.tracks[sensor_type]
        if track.is_empty:
            return _pass_through()

        pointer = machine.loop_position(snapshot, now_ms)
        values = track.lookup(pointer)

        if is_vector_sensor(sensor_type):
            return orient_vector(
                values,
                heading_deg,
                now_ms,
                reference_heading_deg=self.config.reference_heading_deg,
                period_ms=self.config.jitter_period_ms,
                depth=self.config.jitter_depth,
            )

        return np.array(values, dtype=np.float64)
