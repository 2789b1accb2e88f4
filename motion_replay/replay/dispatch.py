"""Sensor-event dispatch adapter between hooked call sites and the engine.

Hooked sensor managers report listener registrations and then deliver events
by sensor handle. The dispatcher remembers which sensor type each handle and
listener belongs to, and overwrites an event's value buffer in place with the
engine's replacement when replay is enabled.
"""

import logging
import threading
from typing import Any, Dict, Optional

import numpy as np

from motion_replay.replay.config import MotionConfigStore
from motion_replay.replay.engine import SensorReplayEngine

logger = logging.getLogger(__name__)


class SensorEventDispatcher:
    """
    Routes intercepted sensor events through a SensorReplayEngine.

    Attributes:
        engine: Engine producing replacement values.
        motion_store: Source of the enable flag and commanded motion.

    Example:
        >>> dispatcher = SensorEventDispatcher(engine, store)
        >>> dispatcher.register_listener(listener, sensor_type=1, handle=7)
        >>> values = np.array([0.1, 9.7, 0.2], dtype=np.float32)
        >>> dispatcher.dispatch(7, values)  # values now hold replayed data
        True
    """

    def __init__(self, engine: SensorReplayEngine, motion_store: MotionConfigStore):
        self.engine = engine
        self.motion_store = motion_store
        self._listener_types: Dict[Any, int] = {}
        self._handle_types: Dict[int, int] = {}
        self._lock = threading.Lock()

    def register_listener(self, listener: Any, sensor_type: int, handle: int) -> None:
        """Record a listener registration and its sensor handle."""
        with self._lock:
            self._listener_types[listener] = sensor_type
            self._handle_types[handle] = sensor_type
        logger.debug(f"Registered listener {listener!r} for sensor type {sensor_type}")

    def unregister_listener(self, listener: Any) -> None:
        with self._lock:
            self._listener_types.pop(listener, None)
        logger.debug(f"Unregistered listener {listener!r}")

    def sensor_type_for_handle(self, handle: int) -> Optional[int]:
        return self._handle_types.get(handle)

    @property
    def listener_count(self) -> int:
        return len(self._listener_types)

    def dispatch(self, handle: int, values: np.ndarray) -> bool:
        """
        Replace an event's values in place.

        Args:
            handle: Sensor handle of the event.
            values: The event's value buffer. Modified in place.

        Returns:
            True if the buffer was overwritten, False if the real reading
            passes through (replay disabled, unknown handle or empty
            replacement).
        """
        if not self.motion_store.enabled:
            return False

        sensor_type = self._handle_types.get(handle)
        if sensor_type is None:
            return False

        motion = self.motion_store.motion
        replacement = self.engine.query(sensor_type, motion.speed_mps, motion.heading_deg)
        n = min(replacement.size, values.size)
        if n == 0:
            return False

        values[:n] = replacement[:n]
        return True
