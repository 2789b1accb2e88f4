"""
Simulation utilities for generating synthetic motion captures.

Modules:
    gait: Procedural idle/walking IMU model and step-count derivation

The generated captures use the same document format as recorded ones and
can be replayed by motion_replay.replay without modification.
"""

from motion_replay.sim.gait import (
    step_frequency_for_speed,
    magnetic_field_body,
    walking_imu,
    idle_imu,
    detect_steps,
    step_counter_from_accel,
    synthesize_capture,
)

__all__ = [
    "step_frequency_for_speed",
    "magnetic_field_body",
    "walking_imu",
    "idle_imu",
    "detect_steps",
    "step_counter_from_accel",
    "synthesize_capture",
]
