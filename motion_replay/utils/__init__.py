"""Utility functions for heading handling."""

from motion_replay.utils.angles import (
    wrap_heading_deg,
    heading_delta_deg,
    heading_change_to_rotation,
)

__all__ = [
    "wrap_heading_deg",
    "heading_delta_deg",
    "heading_change_to_rotation",
]
