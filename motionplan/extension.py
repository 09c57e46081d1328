"""
Constrained tree extension.

Grows a tree from a node toward a target configuration in bounded joint
steps. Every step is an edge that must pass the constraint check; a step
that fails may be projected back onto the constraint region when the
options carry a projection function.
"""

import logging
import threading
from typing import Optional

import numpy as np
from scipy.optimize import minimize

from .constraints import ConstraintChecker
from .tree import Tree
from .utils import input_dist

logger = logging.getLogger(__name__)

# Weight of the stay-near-the-step term in the projection objective
PROJECTION_REGULARIZATION = 1e-3


class ConstrainedExtender:
    """Extends trees toward targets while honoring constraints."""

    def __init__(self, model, checker: ConstraintChecker, options):
        self.model = model
        self.checker = checker
        self.options = options
        limits = np.asarray(model.joint_limits(), dtype=float)
        self.lower = limits[:, 0]
        self.upper = limits[:, 1]

    def project(self, q: np.ndarray) -> np.ndarray:
        """Minimize the projection distance starting from q, within joint limits."""
        projection = self.options.projection
        anchor = np.asarray(q, dtype=float)

        def objective(x):
            dq = x - anchor
            return projection(self.model.forward_kinematics(x)) + PROJECTION_REGULARIZATION * float(dq @ dq)

        result = minimize(objective, anchor, method='L-BFGS-B',
                          bounds=list(zip(self.lower, self.upper)),
                          options={'maxiter': self.options.max_projection_iter})
        return np.clip(result.x, self.lower, self.upper)

    def constrain_near(self, q_from: np.ndarray, q_step: np.ndarray) -> Optional[np.ndarray]:
        """
        Return an admissible configuration for the edge q_from -> q_step.

        Args:
            q_from: Configuration already in the tree
            q_step: Proposed next configuration

        Returns:
            q_step if the edge passes, a projected configuration whose edge
            passes, or None
        """
        if self.checker.check_edge(q_from, q_step):
            return q_step
        if self.options.projection is None or self.options.max_projection_iter == 0:
            return None
        projected = self.project(q_step)
        if self.checker.check_edge(q_from, projected):
            return projected
        return None

    def extend(self, tree: Tree, near: int, target: np.ndarray,
               cancel_event: Optional[threading.Event] = None) -> int:
        """
        Greedily extend ``tree`` from node ``near`` toward ``target``.

        Stops when the target is reached, a step is rejected, a step stops
        making progress, the step budget runs out, or cancellation is
        requested.

        Returns:
            Index of the last node reached (``near`` if nothing was added)
        """
        target = np.asarray(target, dtype=float)
        solve_dist = self.options.joint_solve_dist
        step_size = self.options.step_size
        current = near

        for _ in range(self.options.max_extend_steps):
            if cancel_event is not None and cancel_event.is_set():
                break
            q_current = tree.config(current)
            dist = input_dist(q_current, target)
            if dist <= solve_dist:
                break

            q_step = q_current + (target - q_current) * min(1.0, step_size / dist)
            q_step = np.clip(q_step, self.lower, self.upper)
            q_new = self.constrain_near(q_current, q_step)
            if q_new is None:
                break
            if input_dist(q_current, q_new) <= solve_dist or input_dist(q_new, target) >= dist:
                break
            current = tree.add(q_new, current)

        return current
