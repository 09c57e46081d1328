"""
Constraint functions and edge validation.

A constraint is a stateless predicate over one interpolation step of an
edge, described by a ``ConstraintInput``. An edge between two joint
configurations is admissible only if every active constraint holds on every
step of its interpolation, not just at its endpoints.
"""

import math
import logging
import threading
from collections import Counter
from dataclasses import dataclass
from typing import Callable, Dict, Sequence, Tuple

import numpy as np

from .spatial import Pose, interpolate_pose, orientation_distance
from .utils import interpolate_joint_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConstraintInput:
    """One interpolation step: poses and joint configurations at both ends."""
    start_pose: Pose
    end_pose: Pose
    start_input: np.ndarray
    end_input: np.ndarray


Constraint = Callable[[ConstraintInput], bool]


def orientation_constraint(admissible: Callable[[np.ndarray], bool]) -> Constraint:
    """Wrap a predicate over a 3x3 rotation matrix."""
    def constraint(ci: ConstraintInput) -> bool:
        return bool(admissible(ci.start_pose.rotation) and admissible(ci.end_pose.rotation))
    return constraint


def pose_constraint(admissible: Callable[[Pose], bool]) -> Constraint:
    def constraint(ci: ConstraintInput) -> bool:
        return bool(admissible(ci.start_pose) and admissible(ci.end_pose))
    return constraint


def joint_constraint(admissible: Callable[[np.ndarray], bool]) -> Constraint:
    def constraint(ci: ConstraintInput) -> bool:
        return bool(admissible(ci.start_input) and admissible(ci.end_input))
    return constraint


def linear_interpolating_constraint(from_pose: Pose, to_pose: Pose,
                                    position_eps: float,
                                    orientation_eps: float) -> Tuple[Constraint, Callable[[Pose], float]]:
    """
    Keep the end effector near the straight segment between two poses, with
    orientation near the slerp of the endpoint orientations.

    Returns:
        Tuple of (constraint, deviation) where deviation measures how far a
        pose is outside the allowed region and can be used as a projection
    """
    a = from_pose.position
    segment = to_pose.position - a
    seg_len2 = float(segment @ segment)

    def _deviation(pose: Pose) -> Tuple[float, float]:
        t = 0.0
        if seg_len2 > 0.0:
            t = min(1.0, max(0.0, float((pose.position - a) @ segment) / seg_len2))
        closest = a + t * segment
        expected = interpolate_pose(from_pose, to_pose, t)
        d_pos = float(np.linalg.norm(pose.position - closest))
        d_ori = orientation_distance(expected.rotation, pose.rotation)
        return d_pos, d_ori

    def admissible(pose: Pose) -> bool:
        d_pos, d_ori = _deviation(pose)
        return d_pos <= position_eps and d_ori <= orientation_eps

    def deviation(pose: Pose) -> float:
        d_pos, d_ori = _deviation(pose)
        return max(0.0, d_pos - position_eps) + max(0.0, d_ori - orientation_eps)

    return pose_constraint(admissible), deviation


def check_constraints(constraints: Dict[str, Constraint], ci: ConstraintInput) -> Tuple[bool, str]:
    """Evaluate every constraint; returns (passed, name of the first failing one)."""
    for name, constraint in constraints.items():
        if not constraint(ci):
            return False, name
    return True, ""


class ConstraintChecker:
    """Validates configurations, edges and paths against a set of options."""

    # Hard cap on interpolation samples for a single edge
    MAX_EDGE_STEPS = 10000

    def __init__(self, model, options):
        self.model = model
        self.options = options
        self.constraints = dict(options.constraints())
        self.path_dist = options.path_dist
        self.rejections = Counter()
        self._lock = threading.Lock()

    @property
    def unconstrained(self) -> bool:
        return not self.constraints

    def _reject(self, name: str):
        with self._lock:
            self.rejections[name] += 1

    def check_configuration(self, q: np.ndarray) -> bool:
        """Check a single configuration (a zero-length step)."""
        if self.unconstrained:
            return True
        pose = self.model.forward_kinematics(q)
        ok, name = check_constraints(self.constraints, ConstraintInput(pose, pose, q, q))
        if not ok:
            self._reject(name)
        return ok

    def interpolation_steps(self, q_a: np.ndarray, q_b: np.ndarray,
                            pose_a: Pose, pose_b: Pose) -> int:
        dist = float(self.path_dist(pose_a, pose_b))
        if not math.isfinite(dist):
            logger.debug(f"Non-finite path distance {dist}, checking edge at {self.MAX_EDGE_STEPS} steps")
            return self.MAX_EDGE_STEPS
        pose_steps = math.ceil(dist / self.options.resolution)
        joint_steps = math.ceil(float(np.max(np.abs(q_b - q_a), initial=0.0)) / self.options.step_size)
        return int(min(self.MAX_EDGE_STEPS, max(1, pose_steps, joint_steps)))

    def check_edge(self, q_a: np.ndarray, q_b: np.ndarray) -> bool:
        """True if every constraint holds along the interpolated edge a -> b."""
        if self.unconstrained:
            return True
        q_a = np.asarray(q_a, dtype=float)
        q_b = np.asarray(q_b, dtype=float)
        pose_a = self.model.forward_kinematics(q_a)
        pose_b = self.model.forward_kinematics(q_b)
        steps = self.interpolation_steps(q_a, q_b, pose_a, pose_b)
        configs = interpolate_joint_path(q_a, q_b, steps + 1)

        prev_q, prev_pose = q_a, pose_a
        for i in range(1, steps + 1):
            q = q_b if i == steps else configs[i]
            pose = pose_b if i == steps else self.model.forward_kinematics(q)
            ok, name = check_constraints(self.constraints, ConstraintInput(prev_pose, pose, prev_q, q))
            if not ok:
                self._reject(name)
                return False
            prev_q, prev_pose = q, pose
        return True

    def check_path(self, path: Sequence[np.ndarray]) -> bool:
        """True if every consecutive pair of waypoints forms an admissible edge."""
        if len(path) == 1:
            return self.check_configuration(path[0])
        return all(self.check_edge(path[i], path[i + 1]) for i in range(len(path) - 1))
