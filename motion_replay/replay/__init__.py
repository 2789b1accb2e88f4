"""
Sensor replay engine.

This package turns ingested captures into live sensor readings that follow a
commanded speed and heading.

Modules:
    state: Idle/moving replay state machine and step-count integration
    transform: Heading rotation and anti-fingerprint amplitude jitter
    engine: Query API consumed by the hook layer
    config: YAML engine configuration and the commanded-motion store
    dispatch: Handle registry and in-place event value replacement

Example:
    >>> from motion_replay.replay import SensorReplayEngine
    >>> engine = SensorReplayEngine.from_config()
    >>> engine.query(19, speed_mps=1.4, heading_deg=90.0)  # step counter
"""

from motion_replay.replay.state import (
    Regime,
    ReplayCursor,
    CursorSnapshot,
    ReplayStateMachine,
    step_progress,
)

from motion_replay.replay.transform import (
    VECTOR_SENSOR_TYPES,
    is_vector_sensor,
    amplitude_scale,
    orient_vector,
)

from motion_replay.replay.config import (
    ReplayConfig,
    CommandedMotion,
    MotionConfigStore,
    load_config,
    parse_motion,
)

from motion_replay.replay.engine import SensorReplayEngine, wall_clock_ms

from motion_replay.replay.dispatch import SensorEventDispatcher

__all__ = [
    # State machine
    "Regime",
    "ReplayCursor",
    "CursorSnapshot",
    "ReplayStateMachine",
    "step_progress",
    # Transform
    "VECTOR_SENSOR_TYPES",
    "is_vector_sensor",
    "amplitude_scale",
    "orient_vector",
    # Configuration
    "ReplayConfig",
    "CommandedMotion",
    "MotionConfigStore",
    "load_config",
    "parse_motion",
    # Engine
    "SensorReplayEngine",
    "wall_clock_ms",
    "SensorEventDispatcher",
]
