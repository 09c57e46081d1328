"""
Motion Planning Library

Constrained bidirectional RRT (CBiRRT) joint-space motion planning for robot arms.
"""

__version__ = "1.0.0"
__author__ = "Robot Planning Team"

# Import main classes for easy access
from .cbirrt import CBiRRTPlanner, PlanningReport
from .constraints import (ConstraintChecker, ConstraintInput, joint_constraint,
                          linear_interpolating_constraint, orientation_constraint, pose_constraint)
from .errors import (InvalidInputError, IterationExceededError, NoIKSolutionError, PlanningCancelledError,
                     PlanningError, PlanningResult, PlanningTimeoutError)
from .kinematics import KinematicModel, SerialChain, load_chain
from .metrics import euclidean_pose_metric, orientation_region_distance, pose_flex_ov_metric
from .options import PlannerOptions
from .pose_increment import fix_ov_increment
from .spatial import OrientationVector, Pose, PoseComponents
from .utils import PlanningConfig, load_config

__all__ = [
    "CBiRRTPlanner",
    "PlanningReport",
    "PlannerOptions",
    "ConstraintChecker",
    "ConstraintInput",
    "joint_constraint",
    "linear_interpolating_constraint",
    "orientation_constraint",
    "pose_constraint",
    "PlanningError",
    "PlanningResult",
    "InvalidInputError",
    "NoIKSolutionError",
    "IterationExceededError",
    "PlanningTimeoutError",
    "PlanningCancelledError",
    "KinematicModel",
    "SerialChain",
    "load_chain",
    "euclidean_pose_metric",
    "orientation_region_distance",
    "pose_flex_ov_metric",
    "fix_ov_increment",
    "OrientationVector",
    "Pose",
    "PoseComponents",
    "PlanningConfig",
    "load_config",
]
