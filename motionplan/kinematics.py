"""
Kinematic model adapter consumed by the planner.

The planner only needs the four operations of ``KinematicModel``. A
Denavit-Hartenberg ``SerialChain`` is provided as the reference model; its
chains are described in YAML files under ``config/chains``.
"""

import os
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Sequence

import numpy as np
import yaml
from scipy.optimize import least_squares
from scipy.spatial.transform import Rotation

from .spatial import Pose, orientation_distance

logger = logging.getLogger(__name__)

CHAIN_DIR = os.path.join(os.path.dirname(__file__), 'config', 'chains')


class KinematicsError(Exception):
    """Raised for malformed kinematic chains."""


class NoSolutionError(KinematicsError):
    """Raised when inverse kinematics cannot reach a pose."""


class KinematicModel(Protocol):
    """Capabilities the planner consumes from a kinematic chain."""

    def forward_kinematics(self, q: np.ndarray) -> Pose:
        ...

    def inverse_kinematics(self, pose: Pose, seed: Optional[np.ndarray] = None) -> List[np.ndarray]:
        ...

    def degrees_of_freedom(self) -> int:
        ...

    def joint_limits(self) -> np.ndarray:
        ...


@dataclass(frozen=True)
class DHJoint:
    """Revolute joint described by standard DH parameters (meters, radians)."""
    name: str
    a: float
    d: float
    alpha: float
    offset: float = 0.0
    lower: float = -np.pi
    upper: float = np.pi

    def transform(self, angle: float) -> np.ndarray:
        theta = angle + self.offset
        ct, st = np.cos(theta), np.sin(theta)
        ca, sa = np.cos(self.alpha), np.sin(self.alpha)
        return np.array([
            [ct, -st * ca, st * sa, self.a * ct],
            [st, ct * ca, -ct * sa, self.a * st],
            [0.0, sa, ca, self.d],
            [0.0, 0.0, 0.0, 1.0],
        ])


class SerialChain:
    """Serial chain of revolute DH joints with numerical inverse kinematics."""

    DEFAULT_IK_PARAMS = {
        'max_iters': 200,
        'pos_tol': 1e-4,       # meters
        'rot_tol': 1e-3,       # radians
        'rotation_weight': 0.3,
    }

    def __init__(self, joints: Sequence[DHJoint], name: str = "chain",
                 tool_offset: Optional[np.ndarray] = None,
                 ik_params: Optional[Dict] = None):
        if len(joints) == 0:
            raise KinematicsError("a serial chain needs at least one joint")
        for joint in joints:
            if not joint.lower < joint.upper:
                raise KinematicsError(f"joint {joint.name} has empty limits "
                                      f"[{joint.lower}, {joint.upper}]")
        self.name = name
        self.joints = tuple(joints)
        self.tool_offset = np.eye(4) if tool_offset is None else np.asarray(tool_offset, dtype=float)
        self.ik_params = dict(self.DEFAULT_IK_PARAMS)
        if ik_params:
            self.ik_params.update(ik_params)
        self._limits = np.array([[j.lower, j.upper] for j in self.joints])
        self._limits.setflags(write=False)

    def degrees_of_freedom(self) -> int:
        return len(self.joints)

    def joint_limits(self) -> np.ndarray:
        return self._limits.copy()

    def within_limits(self, q: np.ndarray) -> bool:
        q = np.asarray(q, dtype=float)
        return bool(np.all(q >= self._limits[:, 0]) and np.all(q <= self._limits[:, 1]))

    def random_configuration(self, rng: np.random.Generator) -> np.ndarray:
        return rng.uniform(self._limits[:, 0], self._limits[:, 1])

    def forward_kinematics_matrix(self, q: np.ndarray) -> np.ndarray:
        q = np.asarray(q, dtype=float)
        if q.shape != (len(self.joints),):
            raise KinematicsError(f"expected {len(self.joints)} joint values, got shape {q.shape}")
        T = np.eye(4)
        for joint, angle in zip(self.joints, q):
            T = T @ joint.transform(angle)
        return T @ self.tool_offset

    def forward_kinematics(self, q: np.ndarray) -> Pose:
        return Pose.from_matrix(self.forward_kinematics_matrix(q))

    def inverse_kinematics(self, pose: Pose, seed: Optional[np.ndarray] = None) -> List[np.ndarray]:
        """
        Solve for a joint configuration reaching ``pose`` from ``seed``.

        Args:
            pose: Target end-effector pose in planning units
            seed: Initial joint configuration; the middle of the joint range if None

        Returns:
            List holding the converged solution

        Raises:
            NoSolutionError: if the solver does not converge within tolerance
        """
        lower, upper = self._limits[:, 0], self._limits[:, 1]
        if seed is None:
            seed = 0.5 * (lower + upper)
        x0 = np.clip(np.asarray(seed, dtype=float), lower, upper)
        target_p = pose.position
        target_R = pose.rotation
        weight = self.ik_params['rotation_weight']

        def residual(q):
            T = self.forward_kinematics_matrix(q)
            dp = T[:3, 3] - target_p
            dr = Rotation.from_matrix(target_R.T @ T[:3, :3]).as_rotvec()
            return np.concatenate([dp, weight * dr])

        result = least_squares(residual, x0, bounds=(lower, upper),
                               max_nfev=self.ik_params['max_iters'],
                               xtol=1e-12, ftol=1e-12, gtol=1e-12)
        q = np.clip(result.x, lower, upper)
        reached = self.forward_kinematics(q)
        pos_err = float(np.linalg.norm(reached.position - target_p))
        rot_err = orientation_distance(reached.rotation, target_R)
        if pos_err > self.ik_params['pos_tol'] or rot_err > self.ik_params['rot_tol']:
            raise NoSolutionError(f"IK did not converge: position error {pos_err:.2e} m, "
                                  f"orientation error {rot_err:.2e} rad")
        return [q]

    @classmethod
    def from_dict(cls, data: Dict) -> 'SerialChain':
        """Build a chain from a mapping as stored in the chain YAML files."""
        try:
            joints = []
            for entry in data['joints']:
                lower, upper = entry.get('limits_deg', (-180.0, 180.0))
                joints.append(DHJoint(
                    name=entry['name'],
                    a=float(entry.get('a', 0.0)),
                    d=float(entry.get('d', 0.0)),
                    alpha=float(np.deg2rad(entry.get('alpha_deg', 0.0))),
                    offset=float(np.deg2rad(entry.get('offset_deg', 0.0))),
                    lower=float(np.deg2rad(lower)),
                    upper=float(np.deg2rad(upper)),
                ))
        except (KeyError, TypeError, ValueError) as e:
            raise KinematicsError(f"malformed chain description: {e}") from e
        tool_offset = None
        if 'tool_z' in data:
            tool_offset = np.eye(4)
            tool_offset[2, 3] = float(data['tool_z'])
        return cls(joints, name=data.get('name', 'chain'), tool_offset=tool_offset,
                   ik_params=data.get('ik'))


def available_chains() -> List[str]:
    """Names of the chains bundled with the package."""
    return sorted(os.path.splitext(f)[0] for f in os.listdir(CHAIN_DIR) if f.endswith('.yaml'))


def load_chain(name_or_path: str) -> SerialChain:
    """
    Load a serial chain from a YAML file or a bundled chain name.

    Args:
        name_or_path: Path to a chain YAML file, or the name of a bundled chain

    Returns:
        SerialChain
    """
    path = name_or_path
    if not os.path.exists(path):
        path = os.path.join(CHAIN_DIR, f"{name_or_path}.yaml")
    if not os.path.exists(path):
        raise KinematicsError(f"unknown kinematic chain '{name_or_path}'")
    with open(path, 'r') as f:
        data = yaml.safe_load(f)
    chain = SerialChain.from_dict(data)
    logger.info(f"Loaded kinematic chain '{chain.name}' ({chain.degrees_of_freedom()} DOF) from {path}")
    return chain
