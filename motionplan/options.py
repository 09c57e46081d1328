"""
Planner options: metric, path-distance function, named constraints and the
numeric tunables of a single planning call.
"""

import copy
import logging
from types import MappingProxyType
from typing import Callable, List, Mapping, Optional

from .constraints import Constraint
from .errors import InvalidInputError
from .metrics import Metric, PathDistance, euclidean_pose_metric, pose_delta_distance
from .spatial import Pose
from .utils import PlanningConfig

logger = logging.getLogger(__name__)

Projection = Callable[[Pose], float]


class PlannerOptions:
    """
    Options bundle for one planning call.

    Build with defaults (or ``from_config``), then optionally call
    ``set_metric``, ``set_path_dist``, ``add_constraint`` and
    ``set_projection``. The planner works on a read-only ``snapshot``.
    """

    def __init__(self, config: Optional[PlanningConfig] = None):
        config = config if config is not None else PlanningConfig()

        self.max_iterations = config.max_iterations
        self.max_time = config.max_time
        self.step_size = config.step_size
        self.connect_threshold = config.connect_threshold
        self.joint_solve_dist = config.joint_solve_dist
        self.max_extend_steps = config.max_extend_steps
        self.opponent_bias = config.opponent_bias
        self.iter_before_rand = config.iter_before_rand
        self.restricted_sample_fraction = config.restricted_sample_fraction
        self.random_seed = config.random_seed
        self.resolution = config.resolution
        self.orientation_weight = config.orientation_weight
        self.max_solutions = config.max_solutions
        self.ik_attempts = config.ik_attempts
        self.try_direct = config.try_direct
        self.max_projection_iter = config.max_projection_iter
        self.smooth_iterations = config.smooth_iterations
        self.smooth_patience = config.smooth_patience

        self.metric: Metric = euclidean_pose_metric(self.orientation_weight)
        self.path_dist: PathDistance = pose_delta_distance(self.orientation_weight)
        self.projection: Optional[Projection] = None
        self._constraints = {}
        self._frozen = False

    @classmethod
    def from_config(cls, config: PlanningConfig) -> 'PlannerOptions':
        return cls(config)

    def __setattr__(self, name, value):
        if getattr(self, '_frozen', False):
            raise AttributeError(f"planner options are read-only once planning starts ({name})")
        super().__setattr__(name, value)

    def set_metric(self, metric: Optional[Metric]):
        """Set the goal metric; None restores the default Euclidean pose metric."""
        if metric is not None and not callable(metric):
            raise InvalidInputError("metric must be callable")
        self.metric = metric if metric is not None else euclidean_pose_metric(self.orientation_weight)

    def set_path_dist(self, path_dist: Optional[PathDistance]):
        """Set the path-distance function; None restores the pose-delta default."""
        if path_dist is not None and not callable(path_dist):
            raise InvalidInputError("path distance must be callable")
        self.path_dist = path_dist if path_dist is not None else pose_delta_distance(self.orientation_weight)

    def set_projection(self, projection: Optional[Projection]):
        """
        Set a distance-to-constraint-region function over poses.

        When set, extension steps rejected by a constraint are projected back
        onto the region by minimizing this function before being dropped.
        """
        if projection is not None and not callable(projection):
            raise InvalidInputError("projection must be callable")
        self.projection = projection

    def add_constraint(self, name: str, constraint: Constraint):
        """Add a named constraint, replacing any constraint of the same name."""
        if not callable(constraint):
            raise InvalidInputError(f"constraint '{name}' must be callable")
        if self._frozen:
            raise AttributeError("planner options are read-only once planning starts")
        if name in self._constraints:
            logger.debug(f"Replacing constraint '{name}'")
        self._constraints[name] = constraint

    def remove_constraint(self, name: str):
        if self._frozen:
            raise AttributeError("planner options are read-only once planning starts")
        self._constraints.pop(name, None)

    def constraint_names(self) -> List[str]:
        return list(self._constraints)

    def constraints(self) -> Mapping[str, Constraint]:
        return MappingProxyType(self._constraints)

    def validate(self):
        """Raise InvalidInputError if any tunable is out of range."""
        positive = ['step_size', 'connect_threshold', 'joint_solve_dist', 'resolution', 'max_time']
        for name in positive:
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or not value > 0:
                raise InvalidInputError(f"{name} must be positive, got {value!r}")
        at_least_one = ['max_iterations', 'max_extend_steps', 'max_solutions', 'ik_attempts']
        for name in at_least_one:
            value = getattr(self, name)
            if not isinstance(value, int) or value < 1:
                raise InvalidInputError(f"{name} must be an integer >= 1, got {value!r}")
        non_negative = ['iter_before_rand', 'max_projection_iter', 'smooth_iterations', 'smooth_patience']
        for name in non_negative:
            value = getattr(self, name)
            if not isinstance(value, int) or value < 0:
                raise InvalidInputError(f"{name} must be an integer >= 0, got {value!r}")
        for name in ['opponent_bias', 'restricted_sample_fraction']:
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or not 0.0 <= value <= 1.0:
                raise InvalidInputError(f"{name} must be within [0, 1], got {value!r}")
        if self.orientation_weight < 0:
            raise InvalidInputError("orientation_weight must be non-negative")
        if not callable(self.metric) or not callable(self.path_dist):
            raise InvalidInputError("metric and path distance must be callable")

    def snapshot(self) -> 'PlannerOptions':
        """Read-only copy; later changes to self do not affect it."""
        frozen = copy.copy(self)
        object.__setattr__(frozen, '_constraints', dict(self._constraints))
        object.__setattr__(frozen, '_frozen', True)
        return frozen

    @property
    def frozen(self) -> bool:
        return self._frozen
