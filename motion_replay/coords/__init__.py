"""Device-frame rotations for replayed sensor vectors.

Reference: device frame x right, y forward, z gravity axis.
"""

from motion_replay.coords.rotations import planar_rotation_matrix, rotate_horizontal

__all__ = [
    "planar_rotation_matrix",
    "rotate_horizontal",
]
