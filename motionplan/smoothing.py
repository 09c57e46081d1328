"""
Path post-processing by random shortcutting.

Shortcuts replace a run of waypoints with a direct edge (or, when a
projection is configured, a freshly grown constrained chain). A shortcut is
kept only if it passes the same edge check the planner uses and shortens the
path. Smoothing failures only cost quality; the raw path is returned if the
smoothed one does not re-validate.
"""

import logging
import threading
from typing import List, Optional, Sequence

import numpy as np

from .constraints import ConstraintChecker
from .extension import ConstrainedExtender
from .tree import Tree
from .utils import compute_path_length, input_dist

logger = logging.getLogger(__name__)


class PathSmoother:
    """Shortens a joint path without introducing constraint violations."""

    def __init__(self, checker: ConstraintChecker, options,
                 extender: Optional[ConstrainedExtender] = None):
        self.checker = checker
        self.options = options
        self.extender = extender

    def _shortcut(self, q_i: np.ndarray, q_j: np.ndarray,
                  cancel_event: Optional[threading.Event]) -> Optional[List[np.ndarray]]:
        """Waypoints strictly between q_i and q_j for an admissible bridge, or None."""
        if self.checker.check_edge(q_i, q_j):
            return []
        if self.extender is None or self.options.projection is None:
            return None

        # Grow backwards from q_j so the chain reads forward once walked to the root
        scratch = Tree(len(q_j), name="shortcut")
        root = scratch.add_root(q_j)
        reached = self.extender.extend(scratch, root, q_i, cancel_event)
        q_reached = scratch.config(reached)
        gap = input_dist(q_reached, q_i)
        if gap > self.options.connect_threshold or not self.checker.check_edge(q_i, q_reached):
            return None
        inner = scratch.path_to_root(reached)[:-1]
        if inner and gap <= self.options.joint_solve_dist:
            # Merge q_reached into q_i only if the edge that replaces it passes
            after = inner[1] if len(inner) > 1 else q_j
            if np.array_equal(q_reached, q_i) or self.checker.check_edge(q_i, after):
                inner = inner[1:]
        return inner

    def smooth(self, path: Sequence[np.ndarray], rng: np.random.Generator,
               cancel_event: Optional[threading.Event] = None) -> List[np.ndarray]:
        """
        Shortcut ``path`` for a bounded number of attempts.

        Args:
            path: Raw joint path, every edge already admissible
            rng: Random generator choosing shortcut endpoints
            cancel_event: Stops smoothing early when set

        Returns:
            A path with the same first and last waypoints
        """
        raw = [np.asarray(q, dtype=float) for q in path]
        if len(raw) <= 2:
            return raw

        smoothed = list(raw)
        length = compute_path_length(smoothed)
        attempts = 0
        misses = 0
        while (attempts < self.options.smooth_iterations and misses < self.options.smooth_patience
               and len(smoothed) > 2):
            if cancel_event is not None and cancel_event.is_set():
                break
            attempts += 1
            i = int(rng.integers(0, len(smoothed) - 2))
            j = int(rng.integers(i + 2, len(smoothed)))

            bridge = self._shortcut(smoothed[i], smoothed[j], cancel_event)
            if bridge is None:
                misses += 1
                continue
            candidate = smoothed[:i + 1] + bridge + smoothed[j:]
            candidate_length = compute_path_length(candidate)
            if candidate_length < length:
                smoothed, length = candidate, candidate_length
                misses = 0
            else:
                misses += 1

        if not self.checker.check_path(smoothed):
            logger.warning("Smoothed path failed re-validation, keeping the raw path")
            return raw

        logger.debug(f"Smoothing: {len(raw)} -> {len(smoothed)} waypoints after {attempts} attempts, "
                     f"length {compute_path_length(raw):.4f} -> {length:.4f}")
        return smoothed
