"""
Orientation and anti-fingerprint transform for replayed vector samples.

Recorded captures were taken while walking along a fixed reference heading.
To follow a commanded heading, vector samples are rotated about the gravity
axis by the heading change, then scaled by a smooth, bounded, time-periodic
amplitude factor so that consecutive loops never repeat bit-for-bit:

    θ     = -(h_commanded - h_reference)                 [rad]
    phase = (now mod T) / T · 2π
    scale = 1 + A · sin(phase)                            A = 0.02, T = 10 s

The scale is applied uniformly to all three output axes.
"""

from typing import FrozenSet

import numpy as np

from motion_replay.capture.types import (
    TYPE_ACCELEROMETER,
    TYPE_GRAVITY,
    TYPE_GYROSCOPE,
    TYPE_LINEAR_ACCELERATION,
    TYPE_MAGNETIC_FIELD,
)
from motion_replay.coords.rotations import rotate_horizontal
from motion_replay.utils.angles import heading_change_to_rotation

# Rotation vector (type 11) is absent: it is a quaternion and
# needs quaternion composition, not a planar rotation.
VECTOR_SENSOR_TYPES: FrozenSet[int] = frozenset({
    TYPE_ACCELEROMETER,
    TYPE_MAGNETIC_FIELD,
    TYPE_GYROSCOPE,
    TYPE_GRAVITY,
    TYPE_LINEAR_ACCELERATION,
})

DEFAULT_REFERENCE_HEADING_DEG = 180.0
DEFAULT_JITTER_PERIOD_MS = 10000
DEFAULT_JITTER_DEPTH = 0.02


def is_vector_sensor(sensor_type: int) -> bool:
    """True for 3-axis device-frame sensors that follow the commanded heading."""
    return sensor_type in VECTOR_SENSOR_TYPES


def amplitude_scale(
    now_ms: int,
    period_ms: int = DEFAULT_JITTER_PERIOD_MS,
    depth: float = DEFAULT_JITTER_DEPTH,
) -> float:
    """
    Anti-fingerprint amplitude factor at a given time.

    Args:
        now_ms: Current time in milliseconds.
        period_ms: Oscillation period in milliseconds. Must be positive.
        depth: Relative amplitude of the oscillation, in [0, 1).

    Returns:
        Scale factor in [1 - depth, 1 + depth].

    Example:
        >>> amplitude_scale(2500)  # quarter period
        1.02
        >>> amplitude_scale(7500)  # three quarters
        0.98
    """
    if period_ms <= 0:
        raise ValueError(f"period_ms must be positive, got {period_ms}")
    if not 0.0 <= depth < 1.0:
        raise ValueError(f"depth must be in [0, 1), got {depth}")

    phase = (now_ms % period_ms) / period_ms * 2.0 * np.pi
    return 1.0 + depth * float(np.sin(phase))


def orient_vector(
    values: np.ndarray,
    heading_deg: float,
    now_ms: int,
    reference_heading_deg: float = DEFAULT_REFERENCE_HEADING_DEG,
    period_ms: int = DEFAULT_JITTER_PERIOD_MS,
    depth: float = DEFAULT_JITTER_DEPTH,
) -> np.ndarray:
    """
    Rotate a recorded vector sample to the commanded heading and apply jitter.

    Args:
        values: Recorded sample, shape (D,), D >= 3 for 3-axis sensors.
        heading_deg: Commanded compass heading in degrees.
        now_ms: Current time in milliseconds (drives the jitter phase).
        reference_heading_deg: Heading the capture was recorded along.
        period_ms: Jitter period in milliseconds.
        depth: Jitter depth.

    Returns:
        New array. The first three components are rotated and scaled,
        components beyond the third are copied unchanged. Samples with fewer
        than three components are returned as an unmodified copy.

    Example:
        >>> v = orient_vector(np.array([0.0, 1.0, 9.8]), 90.0, now_ms=0)
        >>> np.round(v, 6)  # scale is exactly 1 at phase 0
        array([-1. ,  0. ,  9.8])
    """
    theta = heading_change_to_rotation(heading_deg, reference_heading_deg)
    result = rotate_horizontal(values, theta)
    if result.size < 3:
        return result

    result[:3] *= amplitude_scale(now_ms, period_ms, depth)
    return result
