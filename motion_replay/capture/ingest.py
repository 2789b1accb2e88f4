"""Capture ingestion: parsing recorded multi-sensor captures into tracks.

A capture is a JSON document with a top-level, time-ordered ``"moments"``
list. Each moment carries an ``"elapsed"`` time in fractional seconds and an
optional ``"data"`` object mapping a string-encoded integer sensor type to a
numeric array::

    {"moments": [
        {"elapsed": 0.059, "data": {"1": [0.1, 9.7, 0.3], "19": [1520.0]}},
        ...
    ]}

Ingestion produces one Track per sensor type and a single loop duration that
is shared by all tracks of the capture.
"""

import json
import logging
import math
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import numpy as np

from .types import Frame, RegimeBinding, Track

logger = logging.getLogger(__name__)

# Largest elapsed time whose millisecond value float64 represents exactly
MAX_ELAPSED_MS = 2 ** 53


class CaptureParseError(ValueError):
    """Raised when a capture document is malformed."""


def _parse_sensor_type(key: str) -> Optional[int]:
    """Integer sensor type from a data key, or None for unrecognized keys."""
    key = key.strip()
    digits = key[1:] if key.startswith("-") else key
    if not digits.isdigit():
        return None
    return int(key)


def _parse_values(raw: Any, key: str, index: int) -> np.ndarray:
    if not isinstance(raw, list):
        raise CaptureParseError(
            f"moment {index}: payload for sensor type '{key}' must be a list, "
            f"got {type(raw).__name__}"
        )
    if any(isinstance(v, bool) or not isinstance(v, (int, float)) for v in raw):
        raise CaptureParseError(
            f"moment {index}: payload for sensor type '{key}' must be numeric"
        )
    if not raw:
        raise CaptureParseError(f"moment {index}: payload for sensor type '{key}' is empty")
    try:
        values = np.asarray(raw, dtype=np.float64)
    except OverflowError as e:
        raise CaptureParseError(
            f"moment {index}: payload for sensor type '{key}' overflows float64"
        ) from e
    if not np.all(np.isfinite(values)):
        raise CaptureParseError(
            f"moment {index}: payload for sensor type '{key}' must be finite"
        )
    return values


def ingest_document(
    document: Mapping[str, Any],
    crop_start_ms: int = 0,
    crop_end_ms: Optional[int] = None,
) -> Tuple[Dict[int, Track], int]:
    """
    Ingest an already-decoded capture document.

    Cropping a prefix is a filter: samples with elapsed time below
    ``crop_start_ms`` are skipped. Cropping a suffix is a truncation:
    ingestion stops at the first sample whose elapsed time exceeds
    ``crop_end_ms``. The first retained sample defines offset zero.

    Args:
        document: Decoded capture (mapping with a ``"moments"`` list).
        crop_start_ms: Minimum absolute elapsed time to retain (ms).
        crop_end_ms: Maximum absolute elapsed time to retain (ms).
                     None keeps everything.

    Returns:
        Tuple of (tracks, duration_ms):
            tracks: Mapping sensor type -> Track.
            duration_ms: Largest relative offset over all retained samples.

    Raises:
        CaptureParseError: If the document is malformed. Nothing is returned
                           for a partially parsed document.
    """
    if not isinstance(document, Mapping) or "moments" not in document:
        raise CaptureParseError("capture must be an object with a 'moments' list")
    moments = document["moments"]
    if not isinstance(moments, list):
        raise CaptureParseError("'moments' must be a list")

    frames: Dict[int, List[Frame]] = {}
    start_ms = None
    last_ms = None
    duration_ms = 0

    for i, moment in enumerate(moments):
        if not isinstance(moment, Mapping):
            raise CaptureParseError(f"moment {i} must be an object")
        elapsed = moment.get("elapsed")
        if isinstance(elapsed, bool) or not isinstance(elapsed, (int, float)):
            raise CaptureParseError(f"moment {i}: 'elapsed' must be a number, got {elapsed!r}")
        try:
            elapsed_ms_float = float(elapsed) * 1000.0
        except OverflowError as e:
            raise CaptureParseError(f"moment {i}: 'elapsed' overflows float64") from e
        if not math.isfinite(elapsed_ms_float) or abs(elapsed_ms_float) > MAX_ELAPSED_MS:
            raise CaptureParseError(
                f"moment {i}: 'elapsed' must be finite and at most {MAX_ELAPSED_MS} ms, "
                f"got {elapsed!r}"
            )

        # Seconds -> milliseconds, truncated toward zero
        elapsed_ms = int(elapsed_ms_float)

        if elapsed_ms < crop_start_ms:
            continue
        if crop_end_ms is not None and elapsed_ms > crop_end_ms:
            break

        if start_ms is None:
            start_ms = elapsed_ms
        if last_ms is not None and elapsed_ms < last_ms:
            raise CaptureParseError(
                f"moment {i}: elapsed time {elapsed_ms} ms goes backwards "
                f"(previous {last_ms} ms)"
            )
        last_ms = elapsed_ms

        relative_ms = elapsed_ms - start_ms
        duration_ms = max(duration_ms, relative_ms)

        data = moment.get("data")
        if data is None:
            continue
        if not isinstance(data, Mapping):
            raise CaptureParseError(f"moment {i}: 'data' must be an object")

        for key, raw in data.items():
            sensor_type = _parse_sensor_type(str(key))
            if sensor_type is None:
                continue
            values = _parse_values(raw, key, i)
            frames.setdefault(sensor_type, []).append(Frame(relative_ms, values))

    tracks = {sensor_type: Track(tuple(fs)) for sensor_type, fs in frames.items()}
    return tracks, duration_ms


def ingest_capture(
    capture_text: str,
    crop_start_ms: int = 0,
    crop_end_ms: Optional[int] = None,
) -> Tuple[Dict[int, Track], int]:
    """
    Parse capture text into per-sensor-type tracks.

    Args:
        capture_text: JSON capture document.
        crop_start_ms: Minimum absolute elapsed time to retain (ms).
        crop_end_ms: Maximum absolute elapsed time to retain (ms), or None.

    Returns:
        Tuple of (tracks, duration_ms). See ingest_document().

    Raises:
        CaptureParseError: If the text is not valid JSON or not a capture.

    Example:
        >>> text = ('{"moments": [{"elapsed": 0.0, "data": {"19": [0]}},'
        ...         '{"elapsed": 5.0, "data": {"19": [100]}}]}')
        >>> tracks, duration_ms = ingest_capture(text)
        >>> duration_ms
        5000
    """
    try:
        document = json.loads(capture_text)
    except json.JSONDecodeError as e:
        raise CaptureParseError(f"capture is not valid JSON: {e}") from e
    return ingest_document(document, crop_start_ms, crop_end_ms)


def load_regime_binding(
    path: Union[str, Path],
    crop_start_ms: int = 0,
    crop_end_ms: Optional[int] = None,
) -> RegimeBinding:
    """
    Load a capture file into a RegimeBinding.

    Raises:
        FileNotFoundError: If the capture file does not exist.
        CaptureParseError: If the capture content is malformed.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Capture file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        text = f.read()

    tracks, duration_ms = ingest_capture(text, crop_start_ms, crop_end_ms)
    logger.debug(f"Loaded capture {path}: {duration_ms} ms, sensor types {sorted(tracks)}")
    return RegimeBinding(duration_ms=duration_ms, tracks=tracks)


def capture_from_streams(
    t: np.ndarray,
    streams: Mapping[int, np.ndarray],
) -> Dict[str, Any]:
    """
    Build a capture document from a shared time vector and sensor streams.

    Args:
        t: Sample times in seconds, shape (N,), non-decreasing.
        streams: Mapping sensor type -> values, shape (N, D) or (N,). Rows
                 that are entirely NaN mean "no sample of this type at
                 this time" and are left out of the moment.

    Returns:
        Capture document with one moment per sample time.
    """
    t = np.asarray(t, dtype=np.float64)
    if t.ndim != 1:
        raise ValueError(f"t must have shape (N,), got {t.shape}")

    columns = {}
    for sensor_type, values in streams.items():
        values = np.asarray(values, dtype=np.float64)
        if values.ndim == 1:
            values = values.reshape(-1, 1)
        if values.shape[0] != t.shape[0]:
            raise ValueError(
                f"stream for sensor type {sensor_type} has {values.shape[0]} samples, "
                f"expected {t.shape[0]}"
            )
        columns[str(int(sensor_type))] = values

    moments = []
    for i, ti in enumerate(t):
        data = {
            key: values[i].tolist()
            for key, values in columns.items()
            if not np.all(np.isnan(values[i]))
        }
        moments.append({"elapsed": round(float(ti), 6), "data": data})

    return {"moments": moments}


def save_capture(document: Mapping[str, Any], path: Union[str, Path]) -> None:
    """Write a capture document as JSON, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(document, f)
