"""
Recorded motion captures.

Modules:
    types: Sensor type identifiers, Frame, Track and RegimeBinding
    ingest: Capture parsing, cropping and capture file I/O

Primary data structures:
    Frame: One sample (time offset, vector) of one sensor type
    Track: Time-ordered frames with nearest-sample lookup
    RegimeBinding: Loop duration and tracks of one replay regime

Example:
    >>> from motion_replay.capture import ingest_capture, TYPE_STEP_COUNTER
    >>> tracks, duration_ms = ingest_capture(open("walking.json").read(),
    ...                                      crop_end_ms=60000)
    >>> tracks[TYPE_STEP_COUNTER].lookup(2000)
"""

from motion_replay.capture.types import (
    TYPE_ACCELEROMETER,
    TYPE_MAGNETIC_FIELD,
    TYPE_GYROSCOPE,
    TYPE_GRAVITY,
    TYPE_LINEAR_ACCELERATION,
    TYPE_ROTATION_VECTOR,
    TYPE_STEP_DETECTOR,
    TYPE_STEP_COUNTER,
    SENSOR_TYPE_NAMES,
    sensor_type_name,
    Frame,
    Track,
    RegimeBinding,
)

from motion_replay.capture.ingest import (
    CaptureParseError,
    ingest_capture,
    ingest_document,
    load_regime_binding,
    capture_from_streams,
    save_capture,
)

__all__ = [
    # Sensor types
    "TYPE_ACCELEROMETER",
    "TYPE_MAGNETIC_FIELD",
    "TYPE_GYROSCOPE",
    "TYPE_GRAVITY",
    "TYPE_LINEAR_ACCELERATION",
    "TYPE_ROTATION_VECTOR",
    "TYPE_STEP_DETECTOR",
    "TYPE_STEP_COUNTER",
    "SENSOR_TYPE_NAMES",
    "sensor_type_name",
    # Data types
    "Frame",
    "Track",
    "RegimeBinding",
    # Ingestion
    "CaptureParseError",
    "ingest_capture",
    "ingest_document",
    "load_regime_binding",
    "capture_from_streams",
    "save_capture",
]
