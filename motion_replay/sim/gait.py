"""
Procedural gait synthesis for generating motion captures.

When no real recording is at hand, idle and walking captures can be
synthesized from a simple periodic gait model. Device frame: x right,
y forward, z up, device held flat.

Walking model (step frequency f = 1.4 · speed, phase φ = 2π f t):
    - Vertical accel: z = g + 2 sin(φ) + 0.5 sin(2φ + 0.5)
      The second harmonic makes heel strike sharper than the lift.
    - Lateral sway:   x = 0.5 sin(φ / 2)
    - Fore/aft:       y = 0.3 cos(φ / 2)
    - Heading sway:   ψ_s = A sin(ω t), ω = π f (half the step rate),
      A = 0.05 rad. The gyro yaw rate is its derivative A ω cos(ω t).
    - Magnetometer:   horizontal field of 40 µT at bearing -heading + ψ_s,
      vertical component -30 µT (dip).

Step counts are derived from the synthesized accelerometer with the same
peak detector a pedometer would use, so the step-counter track is
consistent with the accelerometer track it is replayed alongside.
"""

from typing import Any, Dict, Optional, Tuple

import numpy as np
from scipy import signal

from motion_replay.capture.ingest import capture_from_streams
from motion_replay.capture.types import (
    TYPE_ACCELEROMETER,
    TYPE_GRAVITY,
    TYPE_GYROSCOPE,
    TYPE_LINEAR_ACCELERATION,
    TYPE_MAGNETIC_FIELD,
    TYPE_STEP_COUNTER,
    TYPE_STEP_DETECTOR,
)

GRAVITY = 9.8
STEPS_PER_METER = 1.4
MAG_HORIZONTAL_UT = 40.0
MAG_VERTICAL_UT = -30.0
HEADING_SWAY_RAD = 0.05


def step_frequency_for_speed(speed_mps: float) -> float:
    """Step frequency in Hz for a walking speed (1 m/s ≈ 1.4 steps/s)."""
    if speed_mps < 0:
        raise ValueError(f"speed_mps must be non-negative, got {speed_mps}")
    return STEPS_PER_METER * speed_mps


def magnetic_field_body(
    heading_deg: float,
    sway_rad: np.ndarray,
) -> np.ndarray:
    """
    Earth field seen by a flat device facing ``heading_deg`` (compass).

    Args:
        heading_deg: Compass heading in degrees.
        sway_rad: Heading sway per sample in radians, shape (N,).

    Returns:
        Magnetometer samples, shape (N, 3). Units: µT.
    """
    local_bearing = -np.deg2rad(heading_deg) + sway_rad
    mag = np.empty((len(sway_rad), 3))
    mag[:, 0] = MAG_HORIZONTAL_UT * np.sin(local_bearing)
    mag[:, 1] = MAG_HORIZONTAL_UT * np.cos(local_bearing)
    mag[:, 2] = MAG_VERTICAL_UT
    return mag


def walking_imu(
    t: np.ndarray,
    speed_mps: float,
    heading_deg: float,
    rng: Optional[np.random.Generator] = None,
    accel_noise: float = 0.05,
    gyro_noise: float = 0.002,
    mag_noise: float = 0.2,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Synthesize accelerometer, gyroscope and magnetometer samples of a walk.

    Args:
        t: Sample times in seconds, shape (N,).
        speed_mps: Walking speed in m/s. Sets the step frequency.
        heading_deg: Constant compass heading of the walk in degrees.
        rng: Random generator for sensor noise.
             If None, uses np.random.default_rng().
        accel_noise: Accelerometer noise std dev in m/s².
        gyro_noise: Gyroscope noise std dev in rad/s.
        mag_noise: Magnetometer noise std dev in µT.

    Returns:
        Tuple of (accel, gyro, mag), each shape (N, 3).

    Example:
        >>> t = np.arange(0, 10, 0.01)
        >>> accel, gyro, mag = walking_imu(t, 1.4, 180.0, np.random.default_rng(42))
        >>> accel.shape
        (1000, 3)
    """
    if rng is None:
        rng = np.random.default_rng()
    t = np.asarray(t, dtype=np.float64)
    N = len(t)

    freq = step_frequency_for_speed(speed_mps)
    phase = 2.0 * np.pi * freq * t

    accel = np.empty((N, 3))
    accel[:, 0] = 0.5 * np.sin(phase * 0.5)
    accel[:, 1] = 0.3 * np.cos(phase * 0.5)
    accel[:, 2] = GRAVITY + 2.0 * np.sin(phase) + 0.5 * np.sin(2.0 * phase + 0.5)
    accel += rng.normal(0.0, accel_noise, size=(N, 3))

    omega = np.pi * freq
    sway = HEADING_SWAY_RAD * np.sin(omega * t)

    gyro = rng.normal(0.0, gyro_noise, size=(N, 3))
    gyro[:, 2] += HEADING_SWAY_RAD * omega * np.cos(omega * t)

    mag = magnetic_field_body(heading_deg, sway) + rng.normal(0.0, mag_noise, size=(N, 3))

    return accel, gyro, mag


def idle_imu(
    t: np.ndarray,
    heading_deg: float,
    rng: Optional[np.random.Generator] = None,
    accel_noise: float = 0.02,
    gyro_noise: float = 0.001,
    mag_noise: float = 0.2,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Synthesize a stationary device lying flat. Same outputs as walking_imu()."""
    if rng is None:
        rng = np.random.default_rng()
    N = len(t)

    accel = np.tile([0.0, 0.0, GRAVITY], (N, 1)) + rng.normal(0.0, accel_noise, size=(N, 3))
    gyro = rng.normal(0.0, gyro_noise, size=(N, 3))
    mag = magnetic_field_body(heading_deg, np.zeros(N)) + rng.normal(0.0, mag_noise, size=(N, 3))
    return accel, gyro, mag


def detect_steps(
    accel: np.ndarray,
    dt: float,
    g: float = GRAVITY,
    min_peak_height: float = 1.0,
    min_peak_distance: float = 0.3,
    lowpass_cutoff: Optional[float] = 5.0,
) -> np.ndarray:
    """
    Step indices from peaks of the gravity-removed acceleration magnitude.

    Args:
        accel: Accelerometer samples, shape (N, 3). Units: m/s².
        dt: Sample interval in seconds.
        g: Gravity magnitude removed from ||a||.
        min_peak_height: Minimum dynamic acceleration of a step peak (m/s²).
        min_peak_distance: Minimum time between steps (s).
        lowpass_cutoff: Butterworth low-pass cutoff in Hz, None to disable.

    Returns:
        Indices of detected steps, shape (n_steps,).
    """
    if accel.ndim != 2 or accel.shape[1] != 3:
        raise ValueError(f"accel must have shape (N, 3), got {accel.shape}")
    if dt <= 0:
        raise ValueError(f"dt must be positive, got {dt}")
    if min_peak_distance <= 0:
        raise ValueError(f"min_peak_distance must be positive, got {min_peak_distance}")

    accel_dynamic = np.linalg.norm(accel, axis=1) - g

    # filtfilt needs more samples than its padding length (3 * (order + 1))
    if lowpass_cutoff is not None and len(accel_dynamic) > 15:
        normalized_cutoff = lowpass_cutoff / (0.5 / dt)
        if normalized_cutoff < 1.0:
            b, a = signal.butter(4, normalized_cutoff, btype='low')
            accel_dynamic = signal.filtfilt(b, a, accel_dynamic)

    peaks, _ = signal.find_peaks(
        accel_dynamic,
        height=min_peak_height,
        distance=max(1, int(min_peak_distance / dt)),
    )
    return peaks


def step_counter_from_accel(
    accel: np.ndarray,
    dt: float,
    step_base: float = 0.0,
    **detector_kwargs: Any,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Cumulative step-counter and step-detector streams from accelerometer data.

    Args:
        accel: Accelerometer samples, shape (N, 3).
        dt: Sample interval in seconds.
        step_base: Counter value before the first sample (counters are
                   cumulative since boot on real devices).
        **detector_kwargs: Passed to detect_steps().

    Returns:
        Tuple of (counter, detector):
            counter: Cumulative step count per sample, shape (N,).
            detector: 1.0 at step samples, NaN elsewhere, shape (N,).
    """
    steps = detect_steps(accel, dt, **detector_kwargs)
    events = np.zeros(len(accel))
    events[steps] = 1.0

    counter = step_base + np.cumsum(events)
    detector = np.where(events > 0, 1.0, np.nan)
    return counter, detector


def synthesize_capture(
    duration_s: float,
    speed_mps: float,
    heading_deg: float = 180.0,
    rate_hz: float = 100.0,
    seed: Optional[int] = 42,
    step_base: float = 0.0,
) -> Dict[str, Any]:
    """
    Synthesize a complete capture document.

    A speed of zero produces an idle capture (no steps); any positive speed
    a walk at that speed along ``heading_deg``.

    Args:
        duration_s: Capture length in seconds.
        speed_mps: Walking speed in m/s, 0 for idle.
        heading_deg: Compass heading the device faces.
        rate_hz: Sample rate in Hz.
        seed: Random seed for sensor noise.
        step_base: Initial step-counter value.

    Returns:
        Capture document (see motion_replay.capture.ingest) with accelerometer,
        magnetometer, gyroscope, gravity, linear acceleration, step detector
        and step counter streams.
    """
    if duration_s <= 0:
        raise ValueError(f"duration_s must be positive, got {duration_s}")
    if rate_hz <= 0:
        raise ValueError(f"rate_hz must be positive, got {rate_hz}")

    rng = np.random.default_rng(seed)
    dt = 1.0 / rate_hz
    t = np.arange(0.0, duration_s + 0.5 * dt, dt)

    if speed_mps > 0:
        accel, gyro, mag = walking_imu(t, speed_mps, heading_deg, rng)
        counter, detector = step_counter_from_accel(accel, dt, step_base=step_base)
    else:
        accel, gyro, mag = idle_imu(t, heading_deg, rng)
        counter = np.full(len(t), float(step_base))
        detector = np.full(len(t), np.nan)

    gravity = np.tile([0.0, 0.0, GRAVITY], (len(t), 1))

    streams = {
        TYPE_ACCELEROMETER: accel,
        TYPE_MAGNETIC_FIELD: mag,
        TYPE_GYROSCOPE: gyro,
        TYPE_GRAVITY: gravity,
        TYPE_LINEAR_ACCELERATION: accel - gravity,
        TYPE_STEP_DETECTOR: detector,
        TYPE_STEP_COUNTER: counter,
    }
    return capture_from_streams(t, streams)
