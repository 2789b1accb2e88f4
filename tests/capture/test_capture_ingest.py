"""Unit tests for motion_replay.capture.ingest module.

Tests capture parsing, cropping, error handling and capture file I/O.
"""

import json

import numpy as np
import pytest

from motion_replay.capture import (
    TYPE_ACCELEROMETER,
    TYPE_STEP_COUNTER,
    TYPE_STEP_DETECTOR,
    CaptureParseError,
    capture_from_streams,
    ingest_capture,
    ingest_document,
    load_regime_binding,
    save_capture,
)


@pytest.fixture
def sample_document():
    """A short capture with accelerometer and step counter samples."""
    return {
        "moments": [
            {"elapsed": 1.0, "data": {"1": [0.0, 1.0, 9.8], "19": [100]}},
            {"elapsed": 1.5, "data": {"1": [0.1, 1.1, 9.7]}},
            {"elapsed": 2.0, "data": {"1": [0.2, 1.2, 9.6], "19": [102]}},
            {"elapsed": 3.0},
            {"elapsed": 4.0, "data": {"19": [105]}},
        ]
    }


class TestIngestDocument:
    """Test track building and duration."""

    def test_tracks_per_sensor_type(self, sample_document):
        tracks, _ = ingest_document(sample_document)

        assert set(tracks) == {TYPE_ACCELEROMETER, TYPE_STEP_COUNTER}
        assert len(tracks[TYPE_ACCELEROMETER]) == 3
        assert len(tracks[TYPE_STEP_COUNTER]) == 3

    def test_offsets_relative_to_first_sample(self, sample_document):
        tracks, _ = ingest_document(sample_document)

        np.testing.assert_array_equal(tracks[TYPE_ACCELEROMETER].offsets_ms, [0, 500, 1000])
        np.testing.assert_array_equal(tracks[TYPE_STEP_COUNTER].offsets_ms, [0, 1000, 3000])

    def test_duration_is_max_offset_over_all_samples(self, sample_document):
        """Duration is shared by all tracks, not computed per type."""
        _, duration_ms = ingest_document(sample_document)

        assert duration_ms == 3000

    def test_moment_without_data_extends_duration(self):
        document = {"moments": [
            {"elapsed": 0.0, "data": {"1": [0.0, 0.0, 9.8]}},
            {"elapsed": 2.5},
        ]}
        tracks, duration_ms = ingest_document(document)

        assert duration_ms == 2500
        assert len(tracks[TYPE_ACCELEROMETER]) == 1

    def test_sample_feeds_multiple_types(self, sample_document):
        tracks, _ = ingest_document(sample_document)

        np.testing.assert_array_equal(tracks[TYPE_STEP_COUNTER].first.values, [100.0])
        np.testing.assert_array_equal(tracks[TYPE_ACCELEROMETER].first.values, [0.0, 1.0, 9.8])

    def test_unrecognized_keys_ignored(self):
        document = {"moments": [
            {"elapsed": 0.0, "data": {"1": [0.0, 0.0, 9.8], "gps": [1, 2], "x7": [3]}},
        ]}
        tracks, _ = ingest_document(document)

        assert set(tracks) == {TYPE_ACCELEROMETER}

    def test_elapsed_truncated_to_milliseconds(self):
        document = {"moments": [
            {"elapsed": 0.0, "data": {"19": [0]}},
            {"elapsed": 0.0599, "data": {"19": [1]}},
        ]}
        tracks, _ = ingest_document(document)

        np.testing.assert_array_equal(tracks[TYPE_STEP_COUNTER].offsets_ms, [0, 59])

    def test_empty_capture(self):
        tracks, duration_ms = ingest_document({"moments": []})

        assert tracks == {}
        assert duration_ms == 0


class TestCropping:
    """Prefix cropping filters, suffix cropping truncates."""

    def test_crop_start_skips_prefix(self, sample_document):
        tracks, duration_ms = ingest_document(sample_document, crop_start_ms=1500)

        # First retained sample (1.5 s) becomes offset zero
        np.testing.assert_array_equal(tracks[TYPE_ACCELEROMETER].offsets_ms, [0, 500])
        np.testing.assert_array_equal(tracks[TYPE_STEP_COUNTER].offsets_ms, [500, 2500])
        assert duration_ms == 2500

    def test_crop_end_stops_ingestion(self, sample_document):
        tracks, duration_ms = ingest_document(sample_document, crop_end_ms=2000)

        assert duration_ms == 1000
        assert len(tracks[TYPE_STEP_COUNTER]) == 2

    def test_crop_end_is_truncation_not_filter(self):
        """Samples after the first out-of-window sample are dropped even if in window."""
        document = {"moments": [
            {"elapsed": 0.0, "data": {"19": [0]}},
            {"elapsed": 5.0, "data": {"19": [1]}},
            {"elapsed": 1.0, "data": {"19": [2]}},
        ]}
        tracks, duration_ms = ingest_document(document, crop_end_ms=2000)

        assert len(tracks[TYPE_STEP_COUNTER]) == 1
        assert duration_ms == 0

    def test_crop_window(self, sample_document):
        tracks, duration_ms = ingest_document(
            sample_document, crop_start_ms=1200, crop_end_ms=3500
        )

        assert duration_ms == 1500
        np.testing.assert_array_equal(tracks[TYPE_STEP_COUNTER].offsets_ms, [500])


class TestMalformedCaptures:
    """Malformed input surfaces CaptureParseError."""

    def test_invalid_json(self):
        with pytest.raises(CaptureParseError, match="not valid JSON"):
            ingest_capture("{moments: [")

    def test_missing_moments(self):
        with pytest.raises(CaptureParseError, match="moments"):
            ingest_capture('{"samples": []}')

    def test_moments_not_a_list(self):
        with pytest.raises(CaptureParseError, match="must be a list"):
            ingest_capture('{"moments": {}}')

    def test_missing_elapsed(self):
        with pytest.raises(CaptureParseError, match="elapsed"):
            ingest_capture('{"moments": [{"data": {"1": [0, 0, 9.8]}}]}')

    def test_non_numeric_payload(self):
        with pytest.raises(CaptureParseError, match="numeric"):
            ingest_capture('{"moments": [{"elapsed": 0, "data": {"1": ["a", 0, 9.8]}}]}')

    def test_payload_not_a_list(self):
        with pytest.raises(CaptureParseError, match="must be a list"):
            ingest_capture('{"moments": [{"elapsed": 0, "data": {"1": 9.8}}]}')

    def test_time_going_backwards(self):
        text = json.dumps({"moments": [
            {"elapsed": 1.0, "data": {"19": [0]}},
            {"elapsed": 0.5, "data": {"19": [1]}},
        ]})
        with pytest.raises(CaptureParseError, match="backwards"):
            ingest_capture(text)

    def test_parse_error_is_value_error(self):
        with pytest.raises(ValueError):
            ingest_capture("not json")


class TestCaptureFiles:
    """Test capture file load/save."""

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_regime_binding(tmp_path / "missing.json")

    def test_save_and_load(self, tmp_path, sample_document):
        path = tmp_path / "captures" / "walking.json"
        save_capture(sample_document, path)

        binding = load_regime_binding(path, crop_end_ms=2000)

        assert path.exists()
        assert binding.duration_ms == 1000
        assert binding.has_track(TYPE_ACCELEROMETER)

    def test_capture_from_streams(self):
        t = np.array([0.0, 0.01, 0.02])
        accel = np.array([[0.0, 0.0, 9.8], [0.1, 0.0, 9.8], [0.2, 0.0, 9.8]])
        steps = np.array([0.0, 1.0, 1.0])
        detector = np.array([np.nan, 1.0, np.nan])

        document = capture_from_streams(t, {
            TYPE_ACCELEROMETER: accel,
            TYPE_STEP_COUNTER: steps,
            TYPE_STEP_DETECTOR: detector,
        })
        tracks, duration_ms = ingest_document(document)

        assert len(document["moments"]) == 3
        assert duration_ms == 20
        assert len(tracks[TYPE_ACCELEROMETER]) == 3
        assert len(tracks[TYPE_STEP_DETECTOR]) == 1
        np.testing.assert_array_equal(tracks[TYPE_STEP_DETECTOR].offsets_ms, [10])

    def test_capture_from_streams_length_mismatch(self):
        with pytest.raises(ValueError, match="samples"):
            capture_from_streams(np.arange(3) * 0.01, {TYPE_STEP_COUNTER: np.zeros(2)})


class TestOutOfRangeCaptures:
    """Values that do not fit the millisecond time base or float64 payloads."""

    HUGE_INT = "1" + "0" * 400

    def test_infinite_elapsed(self):
        with pytest.raises(CaptureParseError, match="finite"):
            ingest_capture('{"moments": [{"elapsed": 0.0}, {"elapsed": 1e400}]}')

    def test_nan_elapsed(self):
        with pytest.raises(CaptureParseError, match="finite"):
            ingest_capture('{"moments": [{"elapsed": NaN}]}')

    def test_elapsed_integer_too_large_for_float(self):
        with pytest.raises(CaptureParseError, match="overflows"):
            ingest_capture('{"moments": [{"elapsed": %s}]}' % self.HUGE_INT)

    def test_elapsed_beyond_millisecond_range(self):
        with pytest.raises(CaptureParseError, match="at most"):
            ingest_capture('{"moments": [{"elapsed": 1e300}]}')

    def test_payload_integer_too_large_for_float(self):
        text = '{"moments": [{"elapsed": 0, "data": {"1": [%s, 0, 0]}}]}' % self.HUGE_INT
        with pytest.raises(CaptureParseError, match="overflows float64"):
            ingest_capture(text)

    def test_infinite_payload(self):
        with pytest.raises(CaptureParseError, match="finite"):
            ingest_capture('{"moments": [{"elapsed": 0, "data": {"1": [1e400, 0, 9.8]}}]}')

    def test_empty_payload(self):
        with pytest.raises(CaptureParseError, match="empty"):
            ingest_capture('{"moments": [{"elapsed": 0, "data": {"19": []}}]}')
