"""
Unit conversion utilities for the motion planner.

This module handles conversions between:
- Planning system: SI units (meters, radians)
- Caller pose records: robot units (mm, degrees)
"""

import numpy as np
import logging
from typing import List, Sequence

from .spatial import OrientationVector, Pose, PoseComponents

logger = logging.getLogger(__name__)


class UnitConverter:
    """Handles unit conversions between planning units and pose records."""

    # Unit conversion constants
    M_TO_MM = 1000.0
    MM_TO_M = 1.0 / 1000.0
    RAD_TO_DEG = 180.0 / np.pi
    DEG_TO_RAD = np.pi / 180.0

    @staticmethod
    def planning_to_robot_position(pos_m: np.ndarray) -> np.ndarray:
        """
        Convert position from planning units (meters) to robot units (mm).

        Args:
            pos_m: Position in meters [x, y, z]

        Returns:
            Position in millimeters [x_mm, y_mm, z_mm]
        """
        return np.asarray(pos_m, dtype=float) * UnitConverter.M_TO_MM

    @staticmethod
    def robot_to_planning_position(pos_mm: np.ndarray) -> np.ndarray:
        """
        Convert position from robot units (mm) to planning units (meters).

        Args:
            pos_mm: Position in millimeters [x_mm, y_mm, z_mm]

        Returns:
            Position in meters [x, y, z]
        """
        return np.asarray(pos_mm, dtype=float) * UnitConverter.MM_TO_M

    @staticmethod
    def planning_to_robot_angles(angles_rad):
        """Convert angles from radians to degrees."""
        return np.asarray(angles_rad, dtype=float) * UnitConverter.RAD_TO_DEG

    @staticmethod
    def robot_to_planning_angles(angles_deg):
        """Convert angles from degrees to radians."""
        return np.asarray(angles_deg, dtype=float) * UnitConverter.DEG_TO_RAD

    @staticmethod
    def pose_to_components(pose: Pose) -> PoseComponents:
        """
        Convert a planning pose to a pose record.

        Args:
            pose: Pose in planning units

        Returns:
            PoseComponents with position in mm and theta in degrees
        """
        x, y, z = UnitConverter.planning_to_robot_position(pose.position)
        ov = pose.orientation_vector()
        theta_deg = float(UnitConverter.planning_to_robot_angles(ov.theta))
        return PoseComponents(x=float(x), y=float(y), z=float(z),
                              ox=ov.ox, oy=ov.oy, oz=ov.oz, theta=theta_deg)

    @staticmethod
    def components_to_pose(components: PoseComponents) -> Pose:
        """
        Convert a pose record to a planning pose.

        Args:
            components: PoseComponents with position in mm and theta in degrees

        Returns:
            Pose in planning units (meters, radians)
        """
        pos_m = UnitConverter.robot_to_planning_position(
            [components.x, components.y, components.z])
        theta_rad = float(UnitConverter.robot_to_planning_angles(components.theta))
        ov = OrientationVector(components.ox, components.oy, components.oz, theta_rad)
        return Pose.from_orientation_vector(pos_m, ov)

    @staticmethod
    def path_to_degrees(path: Sequence[np.ndarray]) -> List[np.ndarray]:
        """Convert a joint path from radians to degrees."""
        return [np.rad2deg(q) for q in path]

    @staticmethod
    def path_to_radians(path: Sequence[np.ndarray]) -> List[np.ndarray]:
        """Convert a joint path from degrees to radians."""
        return [np.deg2rad(q) for q in path]

    @staticmethod
    def log_conversion_info(operation: str, input_units: str, output_units: str,
                            input_value, output_value):
        """
        Log unit conversion information for debugging.

        Args:
            operation: Description of the conversion operation
            input_units: Input unit description
            output_units: Output unit description
            input_value: Input value
            output_value: Output value
        """
        logger.debug(f"Unit conversion - {operation}")
        logger.debug(f"  Input ({input_units}): {input_value}")
        logger.debug(f"  Output ({output_units}): {output_value}")
