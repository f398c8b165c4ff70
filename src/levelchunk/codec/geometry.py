"""Point and rotation conversions for :class:`Short3Coord`.

Rotation vectors use 1024 fixed-point units per quarter turn. The forward
conversion composes ``Rx(-x) . Ry(-y) . Rz(-z)``, so a vector is turned
about z first, then y, then x.

The inverse is approximate. A rotation is pinned down by its action on one
point of the unit sphere, so only two of the three components can be
recovered: the component for the basis axis that moves furthest under the
rotation is fixed at 0 and the other two are solved from that axis' image
with ``asin``/``acos`` plus a sign-based quadrant correction. Results are
rounded to the nearest unit. Do not treat it as a general decomposition.
"""

from __future__ import annotations

import math

import numpy as np

from .constants import ANGLE_UNITS_PER_QUARTER_TURN
from .primitives import Short3Coord

__all__ = [
    "coord_to_point",
    "axis_rotation",
    "rotation_matrix",
    "coord_from_rotation",
    "units_to_radians",
    "radians_to_units",
]

_X_AXIS = np.array([1.0, 0.0, 0.0])
_Y_AXIS = np.array([0.0, 1.0, 0.0])
_Z_AXIS = np.array([0.0, 0.0, 1.0])

# Below this |cos(theta)| the second angle is undetermined (gimbal pole).
_POLE_EPSILON = 1e-12


def coord_to_point(coord: Short3Coord) -> np.ndarray:
    return np.array([coord.x, coord.y, coord.z], dtype=np.float64)


def units_to_radians(units: float) -> float:
    return units / ANGLE_UNITS_PER_QUARTER_TURN * (math.pi / 2.0)


def radians_to_units(radians: float) -> int:
    return int(round(radians / math.pi * 2 * ANGLE_UNITS_PER_QUARTER_TURN))


def axis_rotation(angle: float, axis: str) -> np.ndarray:
    c = math.cos(angle)
    s = math.sin(angle)
    if axis == "x":
        return np.array([[1.0, 0.0, 0.0], [0.0, c, -s], [0.0, s, c]])
    if axis == "y":
        return np.array([[c, 0.0, s], [0.0, 1.0, 0.0], [-s, 0.0, c]])
    if axis == "z":
        return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])
    raise ValueError(f"Unknown axis: {axis}")


def rotation_matrix(coord: Short3Coord) -> np.ndarray:
    rot = axis_rotation(-units_to_radians(coord.x), "x")
    rot = rot @ axis_rotation(-units_to_radians(coord.y), "y")
    rot = rot @ axis_rotation(-units_to_radians(coord.z), "z")
    return rot


def _clamp(value: float) -> float:
    return max(-1.0, min(1.0, value))


def _solve(sin_term: float, quadrant: float, numerator: float) -> tuple[float, float]:
    theta = math.asin(_clamp(sin_term))
    if quadrant < 0:
        theta = math.pi - theta
    cos_theta = math.cos(theta)
    if abs(cos_theta) < _POLE_EPSILON:
        return theta, 0.0
    return theta, math.acos(_clamp(numerator / cos_theta))


def coord_from_rotation(matrix) -> Short3Coord:
    m = np.asarray(matrix, dtype=np.float64)
    if m.shape == (4, 4):
        m = m[:3, :3]
    if m.shape != (3, 3):
        raise ValueError(f"Expected a 3x3 or 4x4 matrix, got {m.shape}")

    new_x = m @ _X_AXIS
    new_y = m @ _Y_AXIS
    new_z = m @ _Z_AXIS

    x_dist = abs(float(new_x @ _X_AXIS))
    y_dist = abs(float(new_y @ _Y_AXIS))
    z_dist = abs(float(new_z @ _Z_AXIS))

    if x_dist < y_dist and x_dist < z_dist:
        # x moved furthest: (0, y, z); z by theta then y by phi
        theta, phi = _solve(-new_x[1], new_x[0], new_x[0])
        if new_x[2] < 0:
            phi = -phi
        return Short3Coord(0, radians_to_units(phi), radians_to_units(theta))
    if y_dist < z_dist:
        # y moved furthest: (x, 0, z); z by theta then x by phi
        theta, phi = _solve(new_y[0], new_y[1], new_y[1])
        if new_y[2] > 0:
            phi = -phi
        return Short3Coord(radians_to_units(phi), 0, radians_to_units(theta))
    # z moved furthest: (x, y, 0); y by theta then x by phi
    theta, phi = _solve(new_z[0], new_z[2], new_z[2])
    if new_z[1] < 0:
        phi = -phi
    # the y turn is applied as -y
    return Short3Coord(radians_to_units(phi), radians_to_units(-theta), 0)
