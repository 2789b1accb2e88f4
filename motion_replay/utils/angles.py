"""
Heading angle utilities.

Compass headings are degrees clockwise from North in [0, 360). Rotations in
the device frame (x right, y forward) are radians counter-clockwise, so a
compass heading change maps to a rotation of the opposite sign.

Critical for:
- Normalizing commanded bearings read from the motion config
- Turning a heading change into a device-frame rotation angle
"""

import numpy as np
from typing import Union


def wrap_heading_deg(heading: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """
    Wrap compass heading to [0, 360) degrees.

    Args:
        heading: Heading in degrees (can be any value)

    Returns:
        Wrapped heading in range [0, 360)

    Example:
        >>> wrap_heading_deg(-90.0)
        270.0
        >>> wrap_heading_deg(720.0)
        0.0
    """
    if isinstance(heading, np.ndarray):
        return np.mod(heading, 360.0)
    wrapped = float(heading) % 360.0
    # -1e-15 % 360 rounds to 360.0
    return 0.0 if wrapped >= 360.0 else wrapped


def heading_delta_deg(commanded: float, reference: float) -> float:
    """
    Signed heading change from reference to commanded, wrapped to [-180, 180).

    Example:
        >>> heading_delta_deg(90.0, 180.0)
        -90.0
        >>> heading_delta_deg(10.0, 350.0)
        20.0
    """
    return (commanded - reference + 180.0) % 360.0 - 180.0


def heading_change_to_rotation(commanded: float, reference: float) -> float:
    """
    Device-frame rotation angle for a compass heading change.

    theta = -delta, in radians, with delta the signed heading change wrapped to
    [-180, 180). A clockwise compass change becomes a counter-clockwise
    rotation in the x-right/y-forward frame.

    Args:
        commanded: Commanded heading in degrees.
        reference: Heading the capture was recorded along, in degrees.

    Returns:
        Rotation angle theta in radians.

    Example:
        >>> np.rad2deg(heading_change_to_rotation(90.0, 180.0))
        90.0
    """
    return float(np.deg2rad(-heading_delta_deg(commanded, reference)))
