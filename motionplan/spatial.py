"""
Spatial math primitives used by the planner.

Poses are immutable: a position in meters plus a 3x3 rotation matrix.
Orientations can be expressed as an orientation vector (the direction of
the local +Z axis plus a rotation ``theta`` about it), which is the form
used by pose messages exchanged with callers.
"""

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np
from scipy.spatial.transform import Rotation, Slerp

# Tolerance used to decide whether an orientation vector sits on a pole.
ANGLE_EPSILON = 1e-4


def _rot_z(angle: float) -> np.ndarray:
    c, s = math.cos(angle), math.sin(angle)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


def _rot_y(angle: float) -> np.ndarray:
    c, s = math.cos(angle), math.sin(angle)
    return np.array([[c, 0.0, s], [0.0, 1.0, 0.0], [-s, 0.0, c]])


@dataclass(frozen=True)
class OrientationVector:
    """
    Orientation as a unit direction (ox, oy, oz) plus theta in radians.

    The rotation is Z(lon) * Y(lat) * Z(theta) with lon = atan2(oy, ox)
    and lat = acos(oz). On the poles lon is taken as zero.
    """
    ox: float
    oy: float
    oz: float
    theta: float = 0.0

    def direction(self) -> np.ndarray:
        return np.array([self.ox, self.oy, self.oz], dtype=float)

    def normalized(self) -> 'OrientationVector':
        norm = float(np.linalg.norm(self.direction()))
        if norm == 0.0:
            raise ValueError("orientation vector has zero length")
        return OrientationVector(self.ox / norm, self.oy / norm, self.oz / norm, self.theta)

    def to_matrix(self) -> np.ndarray:
        ov = self.normalized()
        lat = math.acos(max(-1.0, min(1.0, ov.oz)))
        lon = 0.0
        if 1.0 - abs(ov.oz) > ANGLE_EPSILON:
            lon = math.atan2(ov.oy, ov.ox)
        return _rot_z(lon) @ _rot_y(lat) @ _rot_z(ov.theta)

    @classmethod
    def from_matrix(cls, rotation: np.ndarray) -> 'OrientationVector':
        rotation = np.asarray(rotation, dtype=float)
        ox, oy, oz = (float(v) for v in rotation[:, 2])
        oz_clipped = max(-1.0, min(1.0, oz))
        lon = 0.0
        if 1.0 - abs(oz_clipped) > ANGLE_EPSILON:
            lon = math.atan2(oy, ox)
        lat = math.acos(oz_clipped)
        # What is left after removing the direction is a pure Z rotation
        residual = (_rot_z(lon) @ _rot_y(lat)).T @ rotation
        theta = math.atan2(residual[1, 0], residual[0, 0])
        return cls(ox, oy, oz, theta)


class Pose:
    """Immutable rigid transform: position (m) and rotation matrix."""

    __slots__ = ('_position', '_rotation')

    def __init__(self, position: Sequence[float] = (0.0, 0.0, 0.0),
                 rotation: np.ndarray = None):
        position = np.array(position, dtype=float).reshape(3)
        if rotation is None:
            rotation = np.eye(3)
        rotation = np.array(rotation, dtype=float).reshape(3, 3)
        position.setflags(write=False)
        rotation.setflags(write=False)
        self._position = position
        self._rotation = rotation

    @classmethod
    def from_matrix(cls, transform: np.ndarray) -> 'Pose':
        transform = np.asarray(transform, dtype=float)
        if transform.shape != (4, 4):
            raise ValueError(f"expected a 4x4 transform, got shape {transform.shape}")
        return cls(transform[:3, 3], transform[:3, :3])

    @classmethod
    def from_orientation_vector(cls, position: Sequence[float], ov: OrientationVector) -> 'Pose':
        return cls(position, ov.to_matrix())

    @property
    def position(self) -> np.ndarray:
        return self._position

    @property
    def rotation(self) -> np.ndarray:
        return self._rotation

    @property
    def matrix(self) -> np.ndarray:
        T = np.eye(4)
        T[:3, :3] = self._rotation
        T[:3, 3] = self._position
        return T

    def orientation_vector(self) -> OrientationVector:
        return OrientationVector.from_matrix(self._rotation)

    def as_rotation(self) -> Rotation:
        return Rotation.from_matrix(self._rotation)

    def compose(self, other: 'Pose') -> 'Pose':
        return Pose(self._position + self._rotation @ other.position,
                    self._rotation @ other.rotation)

    def __eq__(self, other):
        if not isinstance(other, Pose):
            return NotImplemented
        return (np.array_equal(self._position, other.position)
                and np.array_equal(self._rotation, other.rotation))

    __hash__ = None

    def __repr__(self):
        ov = self.orientation_vector()
        x, y, z = self._position
        return (f"Pose(x={x:.4f}, y={y:.4f}, z={z:.4f}, ox={ov.ox:.4f}, "
                f"oy={ov.oy:.4f}, oz={ov.oz:.4f}, theta={ov.theta:.4f})")


@dataclass(frozen=True)
class PoseComponents:
    """
    Flat pose record as exchanged with callers.

    Positions are in millimeters and theta is in degrees.
    """
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    ox: float = 0.0
    oy: float = 0.0
    oz: float = 1.0
    theta: float = 0.0


def orientation_distance(rotation_a: np.ndarray, rotation_b: np.ndarray) -> float:
    """Angle in radians of the relative rotation between two orientations."""
    relative = np.asarray(rotation_a).T @ np.asarray(rotation_b)
    cos_angle = (np.trace(relative) - 1.0) / 2.0
    return float(math.acos(max(-1.0, min(1.0, cos_angle))))


def pose_delta(a: Pose, b: Pose) -> Pose:
    """Translation from a to b, and the rotation taking a's orientation to b's."""
    return Pose(b.position - a.position, a.rotation.T @ b.rotation)


def interpolate_pose(a: Pose, b: Pose, by: float) -> Pose:
    """Linear interpolation of position and slerp of orientation."""
    position = (1.0 - by) * a.position + by * b.position
    rotations = Rotation.from_matrix(np.stack([a.rotation, b.rotation]))
    rotation = Slerp([0.0, 1.0], rotations)([by])[0]
    return Pose(position, rotation.as_matrix())


def float_almost_equal(a: float, b: float, epsilon: float = 1e-8) -> bool:
    return abs(a - b) <= epsilon


def r3_vector_almost_equal(a: Sequence[float], b: Sequence[float], epsilon: float = 1e-8) -> bool:
    """Component-wise comparison of two 3-vectors."""
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    return bool(np.all(np.abs(a - b) < epsilon))
