"""
Data structures for recorded motion captures.

This module defines the shared data types used by capture ingestion and the
replay engine:
    - Sensor type identifiers (Android sensor type integers)
    - Frame: one sample of one sensor type at a time offset
    - Track: time-ordered frames of one sensor type with nearest-sample lookup
    - RegimeBinding: loop duration plus the tracks of one replay regime

Time Base Convention:
    All offsets are integer milliseconds relative to the first retained
    sample of the capture the track was built from.

Frame Conventions:
    Vector sensors are expressed in the device frame: x to the right,
    y forward, z along the gravity (vertical) axis when the device lies flat.
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple

import numpy as np


# Android sensor type identifiers
TYPE_ACCELEROMETER = 1
TYPE_MAGNETIC_FIELD = 2
TYPE_GYROSCOPE = 4
TYPE_GRAVITY = 9
TYPE_LINEAR_ACCELERATION = 10
TYPE_ROTATION_VECTOR = 11
TYPE_STEP_DETECTOR = 18
TYPE_STEP_COUNTER = 19

SENSOR_TYPE_NAMES: Dict[int, str] = {
    TYPE_ACCELEROMETER: "accelerometer",
    TYPE_MAGNETIC_FIELD: "magnetic_field",
    TYPE_GYROSCOPE: "gyroscope",
    TYPE_GRAVITY: "gravity",
    TYPE_LINEAR_ACCELERATION: "linear_acceleration",
    TYPE_ROTATION_VECTOR: "rotation_vector",
    TYPE_STEP_DETECTOR: "step_detector",
    TYPE_STEP_COUNTER: "step_counter",
}


def sensor_type_name(sensor_type: int) -> str:
    """Human-readable name of a sensor type (falls back to 'type_<n>')."""
    return SENSOR_TYPE_NAMES.get(sensor_type, f"type_{sensor_type}")


@dataclass(frozen=True, eq=False)
class Frame:
    """
    One sample of one sensor type.

    Attributes:
        time_offset_ms: Offset from the start of the track in milliseconds.
                        Must be non-negative.
        values: Sample vector, shape (D,). Stored read-only.
    """

    time_offset_ms: int
    values: np.ndarray

    def __post_init__(self) -> None:
        if self.time_offset_ms < 0:
            raise ValueError(
                f"time_offset_ms must be non-negative, got {self.time_offset_ms}"
            )
        values = np.array(self.values, dtype=np.float64).reshape(-1)
        values.flags.writeable = False
        object.__setattr__(self, "values", values)


@dataclass(frozen=True)
class Track:
    """
    Immutable, time-ordered frame sequence for a single sensor type.

    Lookups are nearest-sample playback, not interpolation: an offset between
    two frames resolves to the frame at or immediately after it, so repeated
    queries at the same offset always return identical values.

    Attributes:
        frames: Frames with non-decreasing time_offset_ms.

    Example:
        >>> track = Track.from_arrays([0, 1000, 2000], [[0.0], [10.0], [20.0]])
        >>> track.lookup(-5)
        array([0.])
        >>> track.lookup(500)
        array([10.])
        >>> track.lookup(2500)
        array([20.])
    """

    frames: Tuple[Frame, ...] = ()
    _offsets: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        frames = tuple(self.frames)
        offsets = np.array([f.time_offset_ms for f in frames], dtype=np.int64)
        if offsets.size > 1 and np.any(np.diff(offsets) < 0):
            raise ValueError("Track frames must have non-decreasing time_offset_ms")
        offsets.flags.writeable = False
        object.__setattr__(self, "frames", frames)
        object.__setattr__(self, "_offsets", offsets)

    @classmethod
    def from_arrays(cls, offsets_ms, values) -> "Track":
        """Build a track from parallel offset and value sequences."""
        if len(offsets_ms) != len(values):
            raise ValueError(
                f"offsets_ms and values must have equal length, "
                f"got {len(offsets_ms)} and {len(values)}"
            )
        return cls(tuple(Frame(int(t), v) for t, v in zip(offsets_ms, values)))

    def __len__(self) -> int:
        return len(self.frames)

    @property
    def is_empty(self) -> bool:
        return len(self.frames) == 0

    @property
    def first(self) -> Frame:
        return self.frames[0]

    @property
    def last(self) -> Frame:
        return self.frames[-1]

    @property
    def offsets_ms(self) -> np.ndarray:
        """Read-only array of frame offsets in milliseconds."""
        return self._offsets

    def lookup(self, offset_ms: int) -> np.ndarray:
        """
        Nearest-sample lookup by time offset.

        Offsets at or before the first frame return the first frame's values,
        offsets at or after the last frame return the last frame's values.
        Anything in between resolves by binary search to the first frame whose
        offset is >= offset_ms.

        Args:
            offset_ms: Query offset in milliseconds.

        Returns:
            Read-only values array of the selected frame.

        Raises:
            ValueError: If the track is empty. Callers check is_empty first.
        """
        if self.is_empty:
            raise ValueError("Cannot look up a value in an empty track")

        if offset_ms <= self._offsets[0]:
            return self.frames[0].values
        if offset_ms >= self._offsets[-1]:
            return self.frames[-1].values

        idx = int(np.searchsorted(self._offsets, offset_ms, side="left"))
        return self.frames[idx].values

    def span(self, axis: int = 0) -> float:
        """Change of one component between the first and last frame.

        0.0 for an empty track or when either end frame lacks the component.
        """
        if self.is_empty or min(self.first.values.size, self.last.values.size) <= axis:
            return 0.0
        return float(self.last.values[axis] - self.first.values[axis])


@dataclass(frozen=True)
class RegimeBinding:
    """
    Loop duration and tracks of one replay regime (idle or moving).

    Attributes:
        duration_ms: Shared loop length of all tracks, the maximum relative
                     offset observed in the capture.
        tracks: Mapping sensor type -> Track.
    """

    duration_ms: int
    tracks: Dict[int, Track] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.duration_ms < 0:
            raise ValueError(f"duration_ms must be non-negative, got {self.duration_ms}")

    def track(self, sensor_type: int) -> Track:
        """Track for a sensor type, or an empty track when the capture has none."""
        return self.tracks.get(sensor_type, Track())

    def has_track(self, sensor_type: int) -> bool:
        return sensor_type in self.tracks

    @property
    def sensor_types(self) -> Tuple[int, ...]:
        return tuple(sorted(self.tracks))
