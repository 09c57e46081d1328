"""
Tests for metric and path-distance functions.
"""

import pytest
import numpy as np

from motionplan.metrics import (
    euclidean_pose_metric, orientation_region_distance, pose_delta_distance,
    pose_flex_ov_metric, position_only_metric, squared_norm_metric, zero_metric
)
from motionplan.spatial import OrientationVector, Pose


def _pose(position, ov=(0.0, 0.0, 1.0), theta=0.0):
    return Pose(position, OrientationVector(*ov, theta).to_matrix())


class TestMetrics:
    """Test goal metrics."""

    @pytest.mark.parametrize("metric", [
        euclidean_pose_metric(), squared_norm_metric(), position_only_metric(), zero_metric()
    ])
    def test_zero_at_goal(self, metric):
        pose = _pose([0.1, 0.2, 0.3], (0.0, 1.0, 0.0), 0.4)
        assert metric(pose, pose) == pytest.approx(0.0, abs=1e-12)

    def test_euclidean_pose_metric(self):
        metric = euclidean_pose_metric(orientation_weight=0.5)
        a = _pose([0.0, 0.0, 0.0])
        b = _pose([0.3, 0.0, 0.0], theta=0.8)
        assert metric(a, b) == pytest.approx(np.hypot(0.3, 0.4))

    def test_squared_norm_metric(self):
        a = _pose([0.0, 0.0, 0.0])
        b = _pose([0.0, 0.2, 0.0], theta=0.5)
        assert squared_norm_metric()(a, b) == pytest.approx(0.04 + 0.25)

    def test_position_only_ignores_rotation(self):
        a = _pose([0.0, 0.0, 0.0])
        b = _pose([0.0, 0.0, 0.0], (1.0, 0.0, 0.0), 1.0)
        assert position_only_metric()(a, b) == 0.0


class TestOrientationRegion:
    """Test orientation region distance."""

    def test_inside_region_is_zero(self):
        goal = OrientationVector(0.0, 0.0, -1.0).to_matrix()
        distance = orientation_region_distance(goal, 0.1)
        tilted = OrientationVector(0.05, 0.0, -1.0, 2.0).to_matrix()
        assert distance(goal) == 0.0
        assert distance(tilted) == 0.0

    def test_outside_region(self):
        goal = OrientationVector(0.0, 0.0, 1.0).to_matrix()
        distance = orientation_region_distance(goal, 0.1)
        sideways = OrientationVector(1.0, 0.0, 0.0).to_matrix()
        assert distance(sideways) == pytest.approx(np.pi / 2 - 0.1)

    def test_pose_flex_ov_metric_ignores_target(self):
        goal = _pose([0.2, 0.0, 0.1], (0.0, 0.0, -1.0))
        metric = pose_flex_ov_metric(goal, 0.09)
        current = _pose([0.2, 0.0, 0.4], (0.0, 0.0, -1.0), 1.5)
        assert metric(current, Pose()) == pytest.approx(0.09)
        assert metric(goal, Pose()) == 0.0


class TestPathDistance:
    """Test the default path-distance function."""

    def test_pose_delta_distance(self):
        path_dist = pose_delta_distance(orientation_weight=0.1)
        a = _pose([0.0, 0.0, 0.0])
        b = _pose([0.0, 0.0, 0.5], theta=1.0)
        assert path_dist(a, b) == pytest.approx(0.6)
        assert path_dist(a, a) == 0.0
