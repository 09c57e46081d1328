"""
Metric and path-distance functions.

A metric maps a (current, goal) pose pair to a non-negative cost and is only
used to rank candidates. A path-distance function maps two poses to a
non-negative scalar that decides how finely an edge is sampled when its
constraints are checked. Both are plain callables.
"""

import math
from typing import Callable

import numpy as np
from scipy.spatial.transform import Rotation

from .spatial import Pose, orientation_distance

Metric = Callable[[Pose, Pose], float]
PathDistance = Callable[[Pose, Pose], float]
OrientationDistance = Callable[[np.ndarray], float]

# Meters of cost charged per radian of rotation by the default functions.
DEFAULT_ORIENTATION_WEIGHT = 0.1


def euclidean_pose_metric(orientation_weight: float = DEFAULT_ORIENTATION_WEIGHT) -> Metric:
    """Euclidean distance in (position, weighted rotation angle) space."""
    def metric(current: Pose, goal: Pose) -> float:
        dp = float(np.linalg.norm(goal.position - current.position))
        do = orientation_weight * orientation_distance(current.rotation, goal.rotation)
        return math.sqrt(dp * dp + do * do)
    return metric


def squared_norm_metric() -> Metric:
    """Squared translation plus squared axis-angle rotation of the pose delta."""
    def metric(current: Pose, goal: Pose) -> float:
        dp = goal.position - current.position
        rotvec = Rotation.from_matrix(current.rotation.T @ goal.rotation).as_rotvec()
        return float(dp @ dp + rotvec @ rotvec)
    return metric


def position_only_metric() -> Metric:
    def metric(current: Pose, goal: Pose) -> float:
        return float(np.linalg.norm(goal.position - current.position))
    return metric


def zero_metric() -> Metric:
    def metric(current: Pose, goal: Pose) -> float:
        return 0.0
    return metric


def orientation_region_distance(goal_rotation: np.ndarray, alpha: float) -> OrientationDistance:
    """
    Distance from an orientation to the cone of half-angle ``alpha`` around
    the goal's orientation-vector direction.

    Only the direction of the local +Z axis is compared; rotation about it is
    free. Returns zero inside the cone.
    """
    goal_axis = np.asarray(goal_rotation, dtype=float)[:, 2]

    def distance(rotation: np.ndarray) -> float:
        cos_angle = float(goal_axis @ np.asarray(rotation)[:, 2])
        # Account for floating point error
        cos_angle = max(-1.0, min(1.0, cos_angle))
        return max(0.0, math.acos(cos_angle) - alpha)
    return distance


def pose_flex_ov_metric(goal: Pose, alpha: float) -> Metric:
    """
    Squared distance to the goal position plus squared distance to the
    goal's orientation region; the second pose argument is ignored.
    """
    orient_dist = orientation_region_distance(goal.rotation, alpha)

    def metric(current: Pose, _target: Pose) -> float:
        dp = float(np.linalg.norm(current.position - goal.position))
        do = orient_dist(current.rotation)
        return dp * dp + do * do
    return metric


def pose_delta_distance(orientation_weight: float = DEFAULT_ORIENTATION_WEIGHT) -> PathDistance:
    """Translation length plus weighted rotation angle between two poses."""
    def path_dist(a: Pose, b: Pose) -> float:
        dp = float(np.linalg.norm(b.position - a.position))
        return dp + orientation_weight * orientation_distance(a.rotation, b.rotation)
    return path_dist
