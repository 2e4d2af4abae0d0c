"""Orbit kinematics for astro-body trees."""

from __future__ import annotations

import math

import numpy as np

from orrery.scene import AstroBody

_ORIGIN = np.array([0.0, 0.0, 0.0, 1.0], dtype=np.float64)


def rotation_y(degrees: float) -> np.ndarray:
    """4x4 right-handed rotation about +Y."""
    theta = math.radians(degrees)
    c, s = math.cos(theta), math.sin(theta)
    result = np.eye(4, dtype=np.float64)
    result[0, 0] = c
    result[0, 2] = s
    result[2, 0] = -s
    result[2, 2] = c
    return result


def translation(x: float, y: float, z: float) -> np.ndarray:
    result = np.eye(4, dtype=np.float64)
    result[:3, 3] = (x, y, z)
    return result


def orbit_transform(body: AstroBody, parent: np.ndarray, time: float) -> np.ndarray:
    """Frame of a body at ``time``: revolve ``omega`` deg/s, then offset along +X."""
    return parent @ rotation_y(time * body.omega) @ translation(body.semimajor_axis, 0.0, 0.0)


def body_positions(bodies: list[AstroBody], time: float) -> dict[str, np.ndarray]:
    """World position of every body at ``time``, keyed by dotted path.

    Children orbit in their parent's revolving frame, so a moon follows its
    planet around the sun.
    """
    positions: dict[str, np.ndarray] = {}
    for body in bodies:
        _collect_positions(body, np.eye(4, dtype=np.float64), time, "", positions)
    return positions


def _collect_positions(
    body: AstroBody,
    parent: np.ndarray,
    time: float,
    prefix: str,
    positions: dict[str, np.ndarray],
) -> None:
    frame = orbit_transform(body, parent, time)
    path = f"{prefix}{body.name}"
    positions[path] = (frame @ _ORIGIN)[:3]
    for child in body.children:
        _collect_positions(child, frame, time, f"{path}.", positions)
