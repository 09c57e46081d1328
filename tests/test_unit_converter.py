"""
Tests for unit conversion between planning units and pose records.
"""

import pytest
import numpy as np

from motionplan.spatial import OrientationVector, Pose, PoseComponents
from motionplan.unit_converter import UnitConverter


class TestUnitConverter:
    """Test unit conversions."""

    def test_position_conversion(self):
        pos_m = np.array([0.206, 0.1, 0.12])
        pos_mm = UnitConverter.planning_to_robot_position(pos_m)
        assert np.allclose(pos_mm, [206.0, 100.0, 120.0])
        assert np.allclose(UnitConverter.robot_to_planning_position(pos_mm), pos_m)

    def test_angle_conversion(self):
        assert UnitConverter.planning_to_robot_angles(np.pi) == pytest.approx(180.0)
        assert np.allclose(UnitConverter.robot_to_planning_angles([90.0, -45.0]), [np.pi / 2, -np.pi / 4])

    def test_components_to_pose(self):
        """A pose record pointing down maps to a flipped Z axis in meters."""
        record = PoseComponents(x=206.0, y=100.0, z=120.0, ox=0.0, oy=0.0, oz=-1.0, theta=0.0)
        pose = UnitConverter.components_to_pose(record)
        assert np.allclose(pose.position, [0.206, 0.1, 0.12])
        assert np.allclose(pose.rotation[:, 2], [0.0, 0.0, -1.0])

    def test_pose_to_components(self):
        rotation = OrientationVector(0.0, 1.0, 0.0, np.deg2rad(15.0)).to_matrix()
        record = UnitConverter.pose_to_components(Pose([-0.066, -0.133, 0.372], rotation))
        assert record.x == pytest.approx(-66.0)
        assert record.z == pytest.approx(372.0)
        assert record.oy == pytest.approx(1.0)
        assert record.theta == pytest.approx(15.0)

    def test_path_conversion(self):
        path = [np.zeros(3), np.full(3, np.pi / 2)]
        degrees = UnitConverter.path_to_degrees(path)
        assert np.allclose(degrees[1], 90.0)
        assert np.allclose(UnitConverter.path_to_radians(degrees)[1], path[1])
