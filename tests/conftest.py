"""
Shared fixtures for motion planning tests.
"""

import pytest
import numpy as np
import matplotlib

matplotlib.use('Agg')

from motionplan.constraints import linear_interpolating_constraint
from motionplan.kinematics import DHJoint, SerialChain, load_chain
from motionplan.options import PlannerOptions
from motionplan.spatial import Pose


def make_planar_arm(n_links: int = 3, link_length: float = 0.3) -> SerialChain:
    """Planar revolute arm moving in the XY plane."""
    joints = [DHJoint(name=f'joint{i+1}', a=link_length, d=0.0, alpha=0.0,
                      lower=-np.pi, upper=np.pi)
              for i in range(n_links)]
    return SerialChain(joints, name=f'planar{n_links}')


class PolarArm:
    """Arm with joints (radius, azimuth, height); straight joint moves trace arcs."""

    def __init__(self):
        self._limits = np.array([[0.2, 2.0], [-np.pi, np.pi], [-1.0, 1.0]])

    def forward_kinematics(self, q):
        r, phi, z = q
        return Pose([r * np.cos(phi), r * np.sin(phi), z])

    def inverse_kinematics(self, pose, seed=None):
        x, y, z = pose.position
        q = np.array([np.hypot(x, y), np.arctan2(y, x), z])
        if np.all(q >= self._limits[:, 0]) and np.all(q <= self._limits[:, 1]):
            return [q]
        return []

    def degrees_of_freedom(self):
        return 3

    def joint_limits(self):
        return self._limits


@pytest.fixture
def planar_arm():
    """Three-link planar arm."""
    return make_planar_arm()


@pytest.fixture
def polar_arm():
    return PolarArm()


@pytest.fixture(scope='session')
def xarm7():
    """Bundled xArm7 chain."""
    return load_chain('xarm7')


@pytest.fixture(scope='session')
def ur5e():
    """Bundled UR5e chain."""
    return load_chain('ur5e')


@pytest.fixture
def xarm7_ready():
    """xArm7 configuration away from joint limits and singularities."""
    return np.array([0.0, -0.3, 0.0, 0.8, 0.0, 1.1, 0.0])


@pytest.fixture
def fast_options():
    """Options with small budgets for quick tests."""
    options = PlannerOptions()
    options.ik_attempts = 4
    options.max_time = 10.0
    options.smooth_iterations = 20
    return options


@pytest.fixture
def line_options(fast_options):
    """Keep the end effector within 3 cm of the segment (1, 0, 0) -> (0, 1, 0).

    Projection pulls steps onto the segment itself.
    """
    from_pose, to_pose = Pose([1.0, 0.0, 0.0]), Pose([0.0, 1.0, 0.0])
    constraint, _ = linear_interpolating_constraint(from_pose, to_pose, 0.03, 0.1)
    _, deviation = linear_interpolating_constraint(from_pose, to_pose, 0.0, 0.0)
    fast_options.step_size = 0.1
    fast_options.add_constraint('line', constraint)
    fast_options.set_projection(lambda pose: deviation(pose) ** 2 * 1e3)
    return fast_options


@pytest.fixture
def joint_wall():
    """Predicate admitting joint 1 only in two separated windows."""
    def admissible(q):
        return bool(-0.3 <= q[0] <= 0.3 or 0.7 <= q[0] <= 1.3)
    return admissible
