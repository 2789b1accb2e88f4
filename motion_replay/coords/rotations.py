"""Heading rotation of device-frame sensor vectors.

Vector sensors (accelerometer, gyroscope, magnetometer, gravity, linear
acceleration) report 3-axis samples in the device frame. With the device
held flat the first two axes span the horizontal plane and the third is the
gravity axis, so a change of walking heading is a rotation about z:

    x' = x cos(θ) - y sin(θ)
    y' = x sin(θ) + y cos(θ)
    z' = z

Conventions:
- Device frame: x right, y forward, z up (gravity axis)
- θ in radians, positive counter-clockwise seen from +z

Rotation-vector (quaternion) samples are not handled here: turning them
would need quaternion composition rather than a planar rotation.
"""

import numpy as np
from numpy.typing import NDArray


def planar_rotation_matrix(theta: float) -> NDArray[np.float64]:
    """2x2 counter-clockwise rotation matrix for angle theta (radians).

    Example:
        >>> R = planar_rotation_matrix(np.pi / 2)
        >>> R @ np.array([0.0, 1.0])  # forward -> left
        array([-1.,  0.])
    """
    c = np.cos(theta)
    s = np.sin(theta)
    return np.array([[c, -s], [s, c]], dtype=np.float64)


def rotate_horizontal(values: NDArray, theta: float) -> NDArray[np.float64]:
    """Rotate the horizontal (x, y) components of a sensor sample about z.

    The third (gravity) axis and any components beyond it are copied through
    unchanged. Samples with fewer than three components are not 3-axis
    vectors and are returned as an unmodified copy.

    Args:
        values: Sensor sample, shape (D,).
        theta: Rotation angle in radians (counter-clockwise).

    Returns:
        New array with rotated x, y components, shape (D,).

    Example:
        >>> rotate_horizontal(np.array([0.0, 1.0, 9.8]), np.pi / 2)
        array([-1. ,  0. ,  9.8])
    """
    result = np.array(values, dtype=np.float64).reshape(-1)
    if result.size < 3:
        return result

    result[:2] = planar_rotation_matrix(theta) @ result[:2]
    return result
