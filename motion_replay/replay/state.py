"""Two-regime replay state machine with step-count integration.

The replay plays one of two recorded regimes in a loop: "idle" while the
commanded speed is at or below a threshold, "moving" above it. Every regime
flip commits the pedometer progress made in the regime being left, so the
synthesized step counter never resets or double-counts:

    loops     = elapsed // duration
    remainder = elapsed %  duration
    progress  = loops · span(step_track) + (step_track(remainder) - step_track.first)

The same progress formula drives step queries while staying in a regime,
which makes a commit exactly "freeze the query value at the flip instant".

Concurrency:
    Tracks are immutable and safe for concurrent readers. The cursor is
    mutated only inside ReplayStateMachine.advance(), under a lock, and
    queries compute against the snapshot that call returns.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from motion_replay.capture.types import TYPE_STEP_COUNTER, RegimeBinding, Track

logger = logging.getLogger(__name__)

DEFAULT_SPEED_THRESHOLD_MPS = 0.5


class Regime(Enum):
    """Replay regime selected from the commanded speed."""

    IDLE = "idle"
    MOVING = "moving"


@dataclass
class ReplayCursor:
    """
    Mutable replay position, one per engine instance.

    Attributes:
        is_initialized: Whether captures were ingested successfully.
        current_regime: Regime currently being played.
        regime_start_ms: Time the current regime was entered (ms).
        accumulated_steps: Step progress committed by earlier regimes.
        last_config_refresh_ms: Last time the motion config was refreshed (ms).
    """

    is_initialized: bool = False
    current_regime: Regime = Regime.IDLE
    regime_start_ms: int = 0
    accumulated_steps: float = 0.0
    last_config_refresh_ms: int = 0


@dataclass(frozen=True)
class CursorSnapshot:
    """Consistent read-only copy of the cursor fields a query needs."""

    regime: Regime
    regime_start_ms: int
    accumulated_steps: float


def step_progress(step_track: Track, duration_ms: int, elapsed_ms: int) -> float:
    """
    Step count gained after dwelling ``elapsed_ms`` in a looping regime.

    Args:
        step_track: Cumulative step-counter track of the regime.
        duration_ms: Loop length of the regime in milliseconds.
        elapsed_ms: Time spent in the regime in milliseconds.

    Returns:
        Steps gained: full loops times the per-loop span plus the partial
        progress within the current loop. 0.0 when the track is empty or the
        regime has no duration.

    Example:
        >>> track = Track.from_arrays([0, 2000, 5000], [[0.0], [40.0], [100.0]])
        >>> step_progress(track, 5000, 12000)
        240.0
    """
    if step_track.is_empty or duration_ms <= 0 or step_track.first.values.size == 0:
        return 0.0

    elapsed_ms = max(0, elapsed_ms)
    loops = elapsed_ms // duration_ms
    remainder = elapsed_ms % duration_ms

    base = step_track.first.values[0]
    current = step_track.lookup(remainder)
    # Frames without a value count as no progress within the loop
    partial = float(current[0] - base) if current.size else 0.0
    return loops * step_track.span(0) + partial


class ReplayStateMachine:
    """
    Idle/moving regime selection and pedometer bookkeeping.

    Attributes:
        idle: Binding played while the commanded speed is at or below the
              threshold.
        moving: Binding played above the threshold.
        cursor: The mutable replay cursor.
        speed_threshold_mps: Speed above which the moving regime is played.
        step_sensor_type: Sensor type of the cumulative step counter.

    Example:
        >>> machine = ReplayStateMachine(idle, moving, ReplayCursor())
        >>> machine.start(now_ms=0)
        >>> snap = machine.advance(speed_mps=1.2, now_ms=1000)  # flips to moving
        >>> machine.step_count(snap, now_ms=13000)
    """

    def __init__(
        self,
        idle: RegimeBinding,
        moving: RegimeBinding,
        cursor: Optional[ReplayCursor] = None,
        speed_threshold_mps: float = DEFAULT_SPEED_THRESHOLD_MPS,
        step_sensor_type: int = TYPE_STEP_COUNTER,
    ):
        if speed_threshold_mps < 0:
            raise ValueError(
                f"speed_threshold_mps must be non-negative, got {speed_threshold_mps}"
            )
        self.idle = idle
        self.moving = moving
        self.cursor = cursor if cursor is not None else ReplayCursor()
        self.speed_threshold_mps = speed_threshold_mps
        self.step_sensor_type = step_sensor_type
        self._lock = threading.Lock()

    def start(self, now_ms: int, regime: Regime = Regime.IDLE) -> None:
        """Begin playback of ``regime`` at ``now_ms`` with no committed steps."""
        with self._lock:
            self.cursor.current_regime = regime
            self.cursor.regime_start_ms = now_ms
            self.cursor.accumulated_steps = 0.0

    def binding(self, regime: Regime) -> RegimeBinding:
        return self.moving if regime is Regime.MOVING else self.idle

    def select_regime(self, speed_mps: float) -> Regime:
        """Moving iff speed exceeds the threshold. No hysteresis."""
        return Regime.MOVING if speed_mps > self.speed_threshold_mps else Regime.IDLE

    def advance(self, speed_mps: float, now_ms: int) -> CursorSnapshot:
        """
        Apply the regime rule for the latest commanded speed.

        On a regime change the step progress made in the regime being left is
        committed to the cursor and the new regime starts at ``now_ms``.

        Returns:
            Snapshot of the cursor after the update.
        """
        target = self.select_regime(speed_mps)
        with self._lock:
            cursor = self.cursor
            if target is not cursor.current_regime:
                self._commit(now_ms)
                logger.debug(
                    f"Regime {cursor.current_regime.value} -> {target.value} at {now_ms} ms, "
                    f"steps committed: {cursor.accumulated_steps:.1f}"
                )
                cursor.current_regime = target
                cursor.regime_start_ms = now_ms
            return CursorSnapshot(
                regime=cursor.current_regime,
                regime_start_ms=cursor.regime_start_ms,
                accumulated_steps=cursor.accumulated_steps,
            )

    def _commit(self, now_ms: int) -> None:
        # Caller holds the lock
        cursor = self.cursor
        leaving = self.binding(cursor.current_regime)
        elapsed_ms = now_ms - cursor.regime_start_ms
        cursor.accumulated_steps += step_progress(
            leaving.track(self.step_sensor_type), leaving.duration_ms, elapsed_ms
        )

    def loop_position(self, snapshot: CursorSnapshot, now_ms: int) -> Optional[int]:
        """Offset into the current regime's loop, or None for a zero-length loop."""
        duration_ms = self.binding(snapshot.regime).duration_ms
        if duration_ms <= 0:
            return None
        return max(0, now_ms - snapshot.regime_start_ms) % duration_ms

    def step_count(self, snapshot: CursorSnapshot, now_ms: int) -> float:
        """Cumulative pedometer value at ``now_ms`` for the snapshot's regime."""
        binding = self.binding(snapshot.regime)
        progress = step_progress(
            binding.track(self.step_sensor_type),
            binding.duration_ms,
            now_ms - snapshot.regime_start_ms,
        )
        return snapshot.accumulated_steps + progress
