"""
Tests for constraint functions and edge checking.
"""

import pytest
import numpy as np

from motionplan.constraints import (
    ConstraintChecker, ConstraintInput, check_constraints, joint_constraint,
    linear_interpolating_constraint, orientation_constraint, pose_constraint
)
from motionplan.metrics import orientation_region_distance
from motionplan.options import PlannerOptions
from motionplan.spatial import OrientationVector, Pose


def _step(q_a, q_b, model):
    return ConstraintInput(model.forward_kinematics(q_a), model.forward_kinematics(q_b), q_a, q_b)


class CountingModel:
    """Wraps a model and counts forward kinematics calls."""

    def __init__(self, model):
        self.model = model
        self.fk_calls = 0

    def forward_kinematics(self, q):
        self.fk_calls += 1
        return self.model.forward_kinematics(q)

    def inverse_kinematics(self, pose, seed=None):
        return self.model.inverse_kinematics(pose, seed)

    def degrees_of_freedom(self):
        return self.model.degrees_of_freedom()

    def joint_limits(self):
        return self.model.joint_limits()


class TestConstraintFunctions:
    """Test constraint wrappers."""

    def test_joint_constraint_checks_both_ends(self, planar_arm, joint_wall):
        constraint = joint_constraint(joint_wall)
        assert constraint(_step(np.zeros(3), np.array([0.2, 0.0, 0.0]), planar_arm))
        assert not constraint(_step(np.zeros(3), np.array([0.5, 0.0, 0.0]), planar_arm))

    def test_pose_constraint(self, planar_arm):
        constraint = pose_constraint(lambda pose: pose.position[1] >= -1e-9)
        assert constraint(_step(np.zeros(3), np.array([0.3, 0.0, 0.0]), planar_arm))
        assert not constraint(_step(np.zeros(3), np.array([-0.3, 0.0, 0.0]), planar_arm))

    def test_orientation_constraint(self, planar_arm):
        """Spinning a planar arm keeps its Z axis but not its X axis."""
        keeps_x = orientation_constraint(lambda R: R[0, 0] > 0.9)
        z_up = orientation_constraint(
            lambda R: orientation_region_distance(np.eye(3), 0.1)(R) == 0)
        step = _step(np.zeros(3), np.array([1.0, 0.0, 0.0]), planar_arm)
        assert z_up(step)
        assert not keeps_x(step)

    def test_check_constraints_reports_failure(self, planar_arm):
        constraints = {
            'always': lambda ci: True,
            'never': lambda ci: False,
        }
        ok, name = check_constraints(constraints, _step(np.zeros(3), np.zeros(3), planar_arm))
        assert not ok
        assert name == 'never'

    def test_linear_interpolating_constraint(self):
        start = Pose([0.0, 0.0, 0.0])
        end = Pose([1.0, 0.0, 0.0], OrientationVector(0.0, 0.0, 1.0, 1.0).to_matrix())
        constraint, deviation = linear_interpolating_constraint(start, end, 0.01, 0.05)

        on_line = Pose([0.5, 0.0, 0.0], OrientationVector(0.0, 0.0, 1.0, 0.5).to_matrix())
        off_line = Pose([0.5, 0.1, 0.0], OrientationVector(0.0, 0.0, 1.0, 0.5).to_matrix())
        assert constraint(ConstraintInput(start, on_line, np.zeros(1), np.zeros(1)))
        assert not constraint(ConstraintInput(start, off_line, np.zeros(1), np.zeros(1)))
        assert deviation(on_line) == 0.0
        assert deviation(off_line) == pytest.approx(0.09)


class TestConstraintChecker:
    """Test edge validation along interpolations."""

    def test_unconstrained_edges_skip_kinematics(self, planar_arm):
        model = CountingModel(planar_arm)
        checker = ConstraintChecker(model, PlannerOptions())
        assert checker.unconstrained
        assert checker.check_edge(np.zeros(3), np.full(3, 2.0))
        assert model.fk_calls == 0

    def test_interior_violation_rejects_edge(self, planar_arm, joint_wall):
        """Both endpoints pass but the interpolation crosses the gap."""
        options = PlannerOptions()
        options.add_constraint('wall', joint_constraint(joint_wall))
        checker = ConstraintChecker(planar_arm, options)

        assert checker.check_configuration(np.zeros(3))
        assert checker.check_configuration(np.array([1.0, 0.0, 0.0]))
        assert not checker.check_edge(np.zeros(3), np.array([1.0, 0.0, 0.0]))
        assert checker.rejections['wall'] == 1

    def test_admissible_edge(self, planar_arm, joint_wall):
        options = PlannerOptions()
        options.add_constraint('wall', joint_constraint(joint_wall))
        checker = ConstraintChecker(planar_arm, options)
        assert checker.check_edge(np.array([0.8, 0.0, 0.0]), np.array([1.2, 0.5, -0.5]))

    def test_interpolation_steps(self, planar_arm):
        """Steps follow the larger of the path-distance and joint-step counts."""
        options = PlannerOptions()
        options.add_constraint('any', lambda ci: True)
        checker = ConstraintChecker(planar_arm, options)

        q_a, q_b = np.zeros(3), np.array([0.0, 0.0, 1.0])
        pose_a, pose_b = planar_arm.forward_kinematics(q_a), planar_arm.forward_kinematics(q_b)
        expected_pose = int(np.ceil(options.path_dist(pose_a, pose_b) / options.resolution))
        assert checker.interpolation_steps(q_a, q_b, pose_a, pose_b) == max(expected_pose, 5)
        assert checker.interpolation_steps(q_a, q_a, pose_a, pose_a) == 1

    def test_interpolation_steps_capped(self, planar_arm):
        options = PlannerOptions()
        options.resolution = 1e-9
        checker = ConstraintChecker(planar_arm, options)
        q_a, q_b = np.zeros(3), np.full(3, 1.0)
        steps = checker.interpolation_steps(q_a, q_b, planar_arm.forward_kinematics(q_a),
                                            planar_arm.forward_kinematics(q_b))
        assert steps == ConstraintChecker.MAX_EDGE_STEPS

    @pytest.mark.parametrize("distance", [float('inf'), float('nan')])
    def test_non_finite_path_distance(self, planar_arm, distance):
        options = PlannerOptions()
        options.set_path_dist(lambda a, b: distance)
        options.add_constraint('any', lambda ci: True)
        checker = ConstraintChecker(planar_arm, options)
        q_a, q_b = np.zeros(3), np.array([0.1, 0.0, 0.0])
        steps = checker.interpolation_steps(q_a, q_b, planar_arm.forward_kinematics(q_a),
                                            planar_arm.forward_kinematics(q_b))
        assert steps == ConstraintChecker.MAX_EDGE_STEPS
        assert checker.check_edge(q_a, q_b)

    def test_check_path(self, planar_arm, joint_wall):
        options = PlannerOptions()
        options.add_constraint('wall', joint_constraint(joint_wall))
        checker = ConstraintChecker(planar_arm, options)
        good = [np.zeros(3), np.array([0.2, 0.1, 0.0]), np.array([0.25, 0.4, 0.0])]
        bad = good + [np.array([1.0, 0.0, 0.0])]
        assert checker.check_path(good)
        assert not checker.check_path(bad)
        assert checker.check_path([np.zeros(3)])
