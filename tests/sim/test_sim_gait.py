"""
Tests for the procedural gait model used to synthesize captures.

Verifies that synthesized captures are internally consistent: the step
counter follows the accelerometer cadence, idle captures do not step, and
the magnetometer points along the requested heading.
"""

import unittest

import numpy as np
import pytest

from motion_replay.capture import (
    TYPE_ACCELEROMETER,
    TYPE_GRAVITY,
    TYPE_GYROSCOPE,
    TYPE_LINEAR_ACCELERATION,
    TYPE_MAGNETIC_FIELD,
    TYPE_STEP_COUNTER,
    TYPE_STEP_DETECTOR,
    ingest_document,
)
from motion_replay.sim.gait import (
    GRAVITY,
    detect_steps,
    idle_imu,
    magnetic_field_body,
    step_counter_from_accel,
    step_frequency_for_speed,
    synthesize_capture,
    walking_imu,
)


class TestWalkingModel(unittest.TestCase):
    def setUp(self) -> None:
        self.dt = 0.01
        self.t = np.arange(0.0, 60.0, self.dt)
        self.accel, self.gyro, self.mag = walking_imu(
            self.t, 1.4, 180.0, np.random.default_rng(42)
        )

    def test_shapes(self) -> None:
        self.assertEqual(self.accel.shape, (len(self.t), 3))
        self.assertEqual(self.gyro.shape, (len(self.t), 3))
        self.assertEqual(self.mag.shape, (len(self.t), 3))

    def test_mean_vertical_accel_is_gravity(self) -> None:
        self.assertAlmostEqual(np.mean(self.accel[:, 2]), GRAVITY, delta=0.05)

    def test_step_cadence_matches_speed(self) -> None:
        """1.4 m/s walk gives about 1.96 steps/s."""
        steps = detect_steps(self.accel, self.dt)
        cadence = len(steps) / 60.0

        self.assertAlmostEqual(cadence, step_frequency_for_speed(1.4), delta=0.1)

    def test_step_spacing_regular(self) -> None:
        steps = detect_steps(self.accel, self.dt)
        intervals = np.diff(steps) * self.dt

        np.testing.assert_allclose(intervals, 1.0 / 1.96, atol=0.05)


class TestIdleModel(unittest.TestCase):
    def test_no_steps_when_idle(self) -> None:
        t = np.arange(0.0, 20.0, 0.01)
        accel, _, _ = idle_imu(t, 180.0, np.random.default_rng(0))

        self.assertEqual(len(detect_steps(accel, 0.01)), 0)


class TestMagnetometer:
    @pytest.mark.parametrize("heading_deg", [0.0, 90.0, 180.0, 270.0])
    def test_horizontal_field_magnitude(self, heading_deg):
        mag = magnetic_field_body(heading_deg, np.zeros(1))

        assert np.linalg.norm(mag[0, :2]) == pytest.approx(40.0)
        assert mag[0, 2] == pytest.approx(-30.0)

    def test_north_facing_field_points_forward(self):
        mag = magnetic_field_body(0.0, np.zeros(1))

        np.testing.assert_allclose(mag[0], [0.0, 40.0, -30.0], atol=1e-12)


class TestStepCounter:
    def test_counter_cumulative_from_base(self):
        t = np.arange(0.0, 10.0, 0.01)
        accel, _, _ = walking_imu(t, 1.4, 180.0, np.random.default_rng(1))

        counter, detector = step_counter_from_accel(accel, 0.01, step_base=1520.0)

        assert counter[0] >= 1520.0
        assert np.all(np.diff(counter) >= 0)
        assert counter[-1] - 1520.0 == np.sum(~np.isnan(detector))

    def test_invalid_inputs(self):
        with pytest.raises(ValueError, match="shape"):
            detect_steps(np.zeros((10, 2)), 0.01)
        with pytest.raises(ValueError, match="dt"):
            detect_steps(np.zeros((10, 3)), 0.0)
        with pytest.raises(ValueError, match="speed_mps"):
            step_frequency_for_speed(-1.0)


class TestSynthesizeCapture:
    def test_walking_capture_ingests(self):
        document = synthesize_capture(duration_s=10.0, speed_mps=1.4)
        tracks, duration_ms = ingest_document(document)

        assert set(tracks) == {
            TYPE_ACCELEROMETER, TYPE_MAGNETIC_FIELD, TYPE_GYROSCOPE, TYPE_GRAVITY,
            TYPE_LINEAR_ACCELERATION, TYPE_STEP_DETECTOR, TYPE_STEP_COUNTER,
        }
        assert duration_ms == pytest.approx(10000, abs=1)
        assert tracks[TYPE_STEP_COUNTER].span(0) == pytest.approx(19.6, abs=2.0)

    def test_idle_capture_has_flat_counter(self):
        document = synthesize_capture(duration_s=5.0, speed_mps=0.0, step_base=300.0)
        tracks, _ = ingest_document(document)

        assert TYPE_STEP_DETECTOR not in tracks
        assert tracks[TYPE_STEP_COUNTER].first.values[0] == 300.0
        assert tracks[TYPE_STEP_COUNTER].span(0) == 0.0

    def test_linear_acceleration_is_accel_minus_gravity(self):
        tracks, _ = ingest_document(synthesize_capture(duration_s=1.0, speed_mps=1.0))

        accel = tracks[TYPE_ACCELEROMETER].frames[10].values
        linear = tracks[TYPE_LINEAR_ACCELERATION].frames[10].values
        np.testing.assert_allclose(linear, accel - [0.0, 0.0, GRAVITY], atol=1e-9)

    def test_seed_reproducible(self):
        a = synthesize_capture(duration_s=1.0, speed_mps=1.4, seed=3)
        b = synthesize_capture(duration_s=1.0, speed_mps=1.4, seed=3)

        assert a == b

    def test_invalid_duration(self):
        with pytest.raises(ValueError, match="duration_s"):
            synthesize_capture(duration_s=0.0, speed_mps=1.0)
