"""
Utility functions and configuration management for motion planning.
"""

import os
import yaml
import numpy as np
from typing import Dict, Any, Optional, Sequence
from dataclasses import dataclass, asdict, fields
import logging

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), 'config', 'default_config.yaml')


@dataclass
class PlanningConfig:
    """Configuration class for planning parameters."""

    # Search budget
    max_iterations: int = 2000
    max_time: float = 30.0

    # Tree growth (joint space, radians)
    step_size: float = 0.2
    connect_threshold: float = 0.1
    joint_solve_dist: float = 1e-4
    max_extend_steps: int = 500

    # Sampling
    opponent_bias: float = 0.1
    iter_before_rand: int = 50
    restricted_sample_fraction: float = 0.1
    random_seed: Optional[int] = 1

    # Edge checking (path-distance units, meters for the default)
    resolution: float = 0.01
    orientation_weight: float = 0.1

    # Goal configurations
    max_solutions: int = 10
    ik_attempts: int = 8
    try_direct: bool = True

    # Constraint projection and smoothing
    max_projection_iter: int = 20
    smooth_iterations: int = 100
    smooth_patience: int = 30

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'PlanningConfig':
        """Create config from dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(config_dict) - known
        if unknown:
            logger.warning(f"Ignoring unknown planning config keys: {sorted(unknown)}")
        return cls(**{k: v for k, v in config_dict.items() if k in known})

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return asdict(self)


def load_config(config_path: Optional[str] = None) -> PlanningConfig:
    """
    Load planning configuration from YAML file.

    Args:
        config_path: Path to configuration file. If None, uses default config.

    Returns:
        PlanningConfig object
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if os.path.exists(config_path):
        try:
            with open(config_path, 'r') as f:
                config_dict = yaml.safe_load(f) or {}
            logger.info(f"Loaded configuration from {config_path}")
            return PlanningConfig.from_dict(config_dict)
        except (OSError, yaml.YAMLError, TypeError) as e:
            logger.warning(f"Failed to load config from {config_path}: {e}")

    logger.info("Using default configuration")
    return PlanningConfig()


def save_config(config: PlanningConfig, config_path: str):
    """
    Save planning configuration to YAML file.

    Args:
        config: PlanningConfig object to save
        config_path: Path where to save the configuration
    """
    directory = os.path.dirname(config_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(config_path, 'w') as f:
        yaml.safe_dump(config.to_dict(), f, default_flow_style=False)
    logger.info(f"Saved configuration to {config_path}")


def validate_joint_configuration(q: np.ndarray, joint_limits: np.ndarray,
                                 margin: float = 0.0) -> bool:
    """
    Validate joint configuration against limits.

    Args:
        q: Joint configuration
        joint_limits: Joint limits, shape (n_joints, 2) as [lower, upper] rows
        margin: Safety margin (fraction of range)

    Returns:
        True if configuration is valid
    """
    if not isinstance(q, np.ndarray) or q.ndim != 1:
        return False

    if len(q) != joint_limits.shape[0]:
        return False

    if not np.all(np.isfinite(q)):
        return False

    limits_lower, limits_upper = joint_limits[:, 0], joint_limits[:, 1]
    margin_abs = (limits_upper - limits_lower) * margin

    return bool(np.all(q >= limits_lower + margin_abs) and np.all(q <= limits_upper - margin_abs))


def input_dist(a: np.ndarray, b: np.ndarray) -> float:
    """Euclidean distance between two joint configurations."""
    return float(np.linalg.norm(np.asarray(b) - np.asarray(a)))


def interpolate_inputs(start: np.ndarray, goal: np.ndarray, by: float) -> np.ndarray:
    """Configuration a fraction ``by`` of the way from start to goal."""
    start = np.asarray(start, dtype=float)
    return start + by * (np.asarray(goal, dtype=float) - start)


def interpolate_joint_path(start: np.ndarray, goal: np.ndarray,
                           num_points: int = 50) -> np.ndarray:
    """
    Interpolate between two joint configurations.

    Args:
        start: Start joint configuration
        goal: Goal joint configuration
        num_points: Number of interpolation points

    Returns:
        Array of interpolated joint configurations
    """
    return np.linspace(start, goal, num_points)


def compute_path_length(path: Sequence[np.ndarray]) -> float:
    """
    Compute total length of a joint space path.

    Args:
        path: Sequence of joint configurations

    Returns:
        Total path length
    """
    if len(path) < 2:
        return 0.0

    return float(np.sum(np.linalg.norm(np.diff(np.asarray(path, dtype=float), axis=0), axis=1)))
