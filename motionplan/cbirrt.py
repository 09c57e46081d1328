#!/usr/bin/env python3
"""
Constrained bidirectional RRT (CBiRRT) motion planner.

Plans a joint-space path from a start configuration to an end-effector goal
pose. One tree grows from the start, one from every admissible inverse
kinematics solution of the goal. Both trees are extended toward shared
targets on a fixed worker pool, every edge is checked against the active
constraints along its interpolation, and the trees are joined as soon as
their reached nodes meet. The joined path is shortcut-smoothed before it is
returned.
"""

import time
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout, wait
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from .constraints import ConstraintChecker
from .errors import (InvalidInputError, IterationExceededError, NoIKSolutionError,
                     PlanningCancelledError, PlanningResult, PlanningTimeoutError)
from .extension import ConstrainedExtender
from .kinematics import KinematicModel, NoSolutionError
from .options import PlannerOptions
from .pose_increment import fix_ov_increment
from .smoothing import PathSmoother
from .spatial import Pose, PoseComponents
from .tree import Tree
from .unit_converter import UnitConverter
from .utils import (compute_path_length, input_dist, interpolate_inputs,
                    validate_joint_configuration)

logger = logging.getLogger(__name__)

# Type aliases
JointConfiguration = np.ndarray
JointPath = List[JointConfiguration]

# Solutions closer than this (radians) are treated as the same IK branch
IK_DUPLICATE_DIST = 1e-3
# How often (seconds) waits on the worker pool re-check cancellation
CANCEL_POLL_INTERVAL = 0.05


@dataclass
class PlanningReport:
    """Result of one planning call with search diagnostics."""
    path: JointPath
    result: PlanningResult = PlanningResult.SUCCESS
    iterations: int = 0
    goal_roots: int = 0
    raw_waypoints: int = 0
    planning_time: float = 0.0
    direct: bool = False
    start_tree: Optional[Tree] = None
    goal_tree: Optional[Tree] = None
    rejections: Dict[str, int] = field(default_factory=dict)

    @property
    def path_length(self) -> float:
        return compute_path_length(self.path)


class CBiRRTPlanner:
    """Constrained bidirectional RRT over a kinematic model."""

    def __init__(self, model: KinematicModel, parallelism: int = 1,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize the planner.

        Args:
            model: Kinematic model providing FK, IK, DOF and joint limits
            parallelism: Number of worker threads for tree growth and IK
            logger: Logger for planning diagnostics; module logger if None
        """
        self.logger = logger or logging.getLogger(__name__)
        dof = model.degrees_of_freedom()
        if not isinstance(dof, (int, np.integer)) or dof < 1:
            raise InvalidInputError(f"kinematic model must have at least one degree of freedom, got {dof}")
        limits = np.asarray(model.joint_limits(), dtype=float)
        if limits.shape != (dof, 2) or not np.all(limits[:, 0] < limits[:, 1]):
            raise InvalidInputError(f"kinematic model joint limits must be {dof} (min, max) pairs "
                                    f"with min < max")
        if not isinstance(parallelism, (int, np.integer)) or parallelism < 1:
            raise InvalidInputError(f"parallelism must be a positive integer, got {parallelism}")

        self.model = model
        self.dof = int(dof)
        self.joint_limits = limits
        self.parallelism = int(parallelism)
        self._executor = ThreadPoolExecutor(max_workers=self.parallelism,
                                            thread_name_prefix="cbirrt")
        self.logger.info(f"CBiRRT planner initialized ({self.dof} DOF, {self.parallelism} workers)")

    def close(self):
        """Shut down the worker pool."""
        self._executor.shutdown(wait=True)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def plan(self, goal: Union[Pose, PoseComponents], start: Sequence[float],
             options: Optional[PlannerOptions] = None,
             cancel_event: Optional[threading.Event] = None) -> JointPath:
        """
        Plan a joint path from ``start`` to a configuration reaching ``goal``.

        Args:
            goal: Target end-effector pose, or a pose record (mm, degrees)
            start: Start joint configuration
            options: Planner options; defaults if None
            cancel_event: Set by the caller to abort planning

        Returns:
            List of joint configurations, first equal to ``start``

        Raises:
            InvalidInputError, NoIKSolutionError, IterationExceededError,
            PlanningTimeoutError, PlanningCancelledError
        """
        return self.plan_detailed(goal, start, options, cancel_event).path

    def plan_detailed(self, goal: Union[Pose, PoseComponents], start: Sequence[float],
                      options: Optional[PlannerOptions] = None,
                      cancel_event: Optional[threading.Event] = None) -> PlanningReport:
        """Same as ``plan`` but returns a PlanningReport with search diagnostics."""
        t0 = time.monotonic()
        opts = (options if options is not None else PlannerOptions()).snapshot()
        opts.validate()
        start = self._validate_start(start)
        goal_pose = self._resolve_goal(goal, start)

        checker = ConstraintChecker(self.model, opts)
        if not checker.check_configuration(start):
            raise InvalidInputError("start configuration violates an active constraint")

        rng = np.random.default_rng(opts.random_seed)
        self.logger.info(f"Starting CBiRRT plan to {goal_pose} "
                         f"(constraints: {opts.constraint_names() or 'none'})")

        solutions = self._goal_configurations(goal_pose, start, opts, checker, rng, cancel_event)

        if opts.try_direct:
            for solution in solutions:
                if checker.check_edge(start, solution):
                    elapsed = time.monotonic() - t0
                    self.logger.info(f"Direct path to goal is admissible ({elapsed:.3f}s)")
                    return PlanningReport(path=[start.copy(), solution.copy()], goal_roots=len(solutions),
                                          raw_waypoints=2, planning_time=elapsed, direct=True,
                                          rejections=dict(checker.rejections))

        extender = ConstrainedExtender(self.model, checker, opts)
        start_tree = Tree(self.dof, name="start")
        start_tree.add_root(start)
        goal_tree = Tree(self.dof, name="goal")
        for solution in solutions:
            goal_tree.add_root(solution)

        raw_path, iterations = self._search(start_tree, goal_tree, extender, checker, opts,
                                            rng, t0, cancel_event)

        smoother = PathSmoother(checker, opts, extender)
        path = smoother.smooth(raw_path, rng, cancel_event)
        elapsed = time.monotonic() - t0
        self.logger.info(f"CBiRRT path found: {len(path)} waypoints (raw {len(raw_path)}), "
                         f"{iterations} iterations, trees {len(start_tree)}/{len(goal_tree)}, "
                         f"{elapsed:.3f}s")
        if checker.rejections:
            self.logger.debug(f"Rejected edges by constraint: {dict(checker.rejections)}")

        return PlanningReport(path=[np.array(q) for q in path], iterations=iterations,
                              goal_roots=len(solutions), raw_waypoints=len(raw_path),
                              planning_time=elapsed, start_tree=start_tree, goal_tree=goal_tree,
                              rejections=dict(checker.rejections))

    # ------------------------------------------------------------------
    # Input handling
    # ------------------------------------------------------------------

    def _validate_start(self, start: Sequence[float]) -> np.ndarray:
        try:
            q = np.array(start, dtype=float)
        except (TypeError, ValueError) as e:
            raise InvalidInputError(f"start configuration is not numeric: {e}") from e
        if q.ndim != 1 or len(q) != self.dof:
            raise InvalidInputError(f"start configuration has {q.size} values, "
                                    f"kinematic chain has {self.dof} joints")
        if not validate_joint_configuration(q, self.joint_limits):
            raise InvalidInputError(f"start configuration {q} is outside the joint limits")
        return q

    def _resolve_goal(self, goal: Union[Pose, PoseComponents], start: np.ndarray) -> Pose:
        if isinstance(goal, Pose):
            return goal
        if isinstance(goal, PoseComponents):
            seed = UnitConverter.pose_to_components(self.model.forward_kinematics(start))
            fixed = fix_ov_increment(goal, seed)
            pose = UnitConverter.components_to_pose(fixed)
            UnitConverter.log_conversion_info("goal pose record", "mm/deg", "m/rad", fixed, pose)
            return pose
        raise InvalidInputError(f"goal must be a Pose or PoseComponents, got {type(goal).__name__}")

    # ------------------------------------------------------------------
    # Goal configurations
    # ------------------------------------------------------------------

    def _solve_ik(self, goal_pose: Pose, seed: np.ndarray) -> List[np.ndarray]:
        try:
            return [np.asarray(q, dtype=float) for q in self.model.inverse_kinematics(goal_pose, seed)]
        except NoSolutionError as e:
            self.logger.debug(f"IK seed produced no solution: {e}")
            return []

    def _await(self, futures, cancel_event: Optional[threading.Event]) -> list:
        """Collect results in submission order, polling for cancellation."""
        results = []
        try:
            for future in futures:
                while True:
                    if cancel_event is not None and cancel_event.is_set():
                        raise PlanningCancelledError("planning cancelled by caller")
                    try:
                        results.append(future.result(timeout=CANCEL_POLL_INTERVAL))
                        break
                    except FutureTimeout:
                        continue
        finally:
            for future in futures:
                future.cancel()
            wait(futures)
        return results

    def _goal_configurations(self, goal_pose: Pose, start: np.ndarray, opts: PlannerOptions,
                             checker: ConstraintChecker, rng: np.random.Generator,
                             cancel_event: Optional[threading.Event]) -> List[np.ndarray]:
        """Admissible IK solutions ranked by goal metric plus joint travel."""
        lower, upper = self.joint_limits[:, 0], self.joint_limits[:, 1]
        seeds = [start] + [rng.uniform(lower, upper) for _ in range(opts.ik_attempts - 1)]
        futures = [self._executor.submit(self._solve_ik, goal_pose, seed) for seed in seeds]
        candidates = [q for batch in self._await(futures, cancel_event) for q in batch]

        unique = []
        for q in candidates:
            if q.shape != (self.dof,) or not validate_joint_configuration(q, self.joint_limits):
                self.logger.debug(f"Discarding IK solution outside joint limits: {q}")
                continue
            if any(input_dist(q, other) < IK_DUPLICATE_DIST for other in unique):
                continue
            if not checker.check_configuration(q):
                self.logger.debug(f"Discarding IK solution violating constraints: {q}")
                continue
            unique.append(q)

        if not unique:
            self.logger.warning(f"No admissible IK solution ({len(candidates)} candidates rejected)")
            raise NoIKSolutionError(f"no admissible IK solution for goal {goal_pose} "
                                    f"from {len(seeds)} seeds")

        def score(q):
            return opts.metric(self.model.forward_kinematics(q), goal_pose) + input_dist(start, q)

        ranked = sorted(unique, key=score)[:opts.max_solutions]
        self.logger.debug(f"{len(candidates)} IK solutions, {len(unique)} admissible, "
                          f"seeding {len(ranked)} goal roots")
        return ranked

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def _extend_pair(self, extender: ConstrainedExtender, tree_a: Tree, tree_b: Tree,
                     target: np.ndarray, cancel_event: Optional[threading.Event]) -> Tuple[int, int]:
        """Extend both trees toward the same target concurrently."""
        futures = [self._executor.submit(extender.extend, tree, tree.nearest(target), target, cancel_event)
                   for tree in (tree_a, tree_b)]
        wait(futures)
        reached_a, reached_b = (f.result() for f in futures)
        return reached_a, reached_b

    def _can_join(self, checker: ConstraintChecker, opts: PlannerOptions,
                  q_a: np.ndarray, q_b: np.ndarray) -> bool:
        return input_dist(q_a, q_b) <= opts.connect_threshold and checker.check_edge(q_a, q_b)

    def _sample(self, opts: PlannerOptions, opposing: Tree, reached: np.ndarray,
                iteration: int, rng: np.random.Generator) -> np.ndarray:
        lower, upper = self.joint_limits[:, 0], self.joint_limits[:, 1]
        if rng.random() < opts.opponent_bias:
            return opposing.config(opposing.latest())
        # Past the warm-up, two of every four targets are uniform
        if iteration >= opts.iter_before_rand and iteration % 4 >= 2:
            return rng.uniform(lower, upper)
        span = (upper - lower) * opts.restricted_sample_fraction
        return np.clip(reached + rng.uniform(-span, span), lower, upper)

    def _search(self, start_tree: Tree, goal_tree: Tree, extender: ConstrainedExtender,
                checker: ConstraintChecker, opts: PlannerOptions, rng: np.random.Generator,
                t0: float, cancel_event: Optional[threading.Event]) -> Tuple[JointPath, int]:
        deadline = t0 + opts.max_time
        first_goal = goal_tree.config(goal_tree.roots()[0])
        target = interpolate_inputs(start_tree.config(0), first_goal, 0.5)
        tree_a, tree_b = start_tree, goal_tree

        for i in range(opts.max_iterations):
            if cancel_event is not None and cancel_event.is_set():
                self.logger.warning(f"CBiRRT cancelled after {i} iterations")
                raise PlanningCancelledError("planning cancelled by caller")
            now = time.monotonic()
            elapsed = now - t0
            if now > deadline:
                self.logger.warning(f"CBiRRT timed out after {i} iterations ({elapsed:.3f}s)")
                raise PlanningTimeoutError(f"no path found within {opts.max_time}s",
                                           iterations=i, elapsed=elapsed)
            if i % 100 == 0 and i > 0:
                self.logger.debug(f"Iteration {i}, trees {len(start_tree)}/{len(goal_tree)}")

            reached_a, reached_b = self._extend_pair(extender, tree_a, tree_b, target, cancel_event)
            q_a, q_b = tree_a.config(reached_a), tree_b.config(reached_b)
            joined = self._can_join(checker, opts, q_a, q_b)

            if not joined and input_dist(q_a, q_b) > opts.connect_threshold:
                # Second chance: pull both trees toward the midpoint of what they reached
                midpoint = interpolate_inputs(q_a, q_b, 0.5)
                reached_a, reached_b = self._extend_pair(extender, tree_a, tree_b, midpoint, cancel_event)
                q_a, q_b = tree_a.config(reached_a), tree_b.config(reached_b)
                joined = self._can_join(checker, opts, q_a, q_b)

            if joined:
                if tree_a is start_tree:
                    path = self._extract_path(start_tree, reached_a, goal_tree, reached_b, checker, opts)
                else:
                    path = self._extract_path(start_tree, reached_b, goal_tree, reached_a, checker, opts)
                return path, i + 1

            target = self._sample(opts, tree_b, q_a, i, rng)
            tree_a, tree_b = tree_b, tree_a

        elapsed = time.monotonic() - t0
        self.logger.warning(f"CBiRRT exhausted {opts.max_iterations} iterations "
                            f"(trees {len(start_tree)}/{len(goal_tree)}, {elapsed:.3f}s)")
        raise IterationExceededError(f"no path found within {opts.max_iterations} iterations",
                                     iterations=opts.max_iterations, elapsed=elapsed)

    @staticmethod
    def _merge_junction(checker: ConstraintChecker, q_dropped: np.ndarray, q_kept: np.ndarray,
                        q_before: np.ndarray, q_after: np.ndarray) -> bool:
        """A near-duplicate junction node may go only if its replacement edge is admissible."""
        return np.array_equal(q_dropped, q_kept) or checker.check_edge(q_before, q_after)

    def _extract_path(self, start_tree: Tree, start_node: int, goal_tree: Tree, goal_node: int,
                      checker: ConstraintChecker, opts: PlannerOptions) -> JointPath:
        """Start root -> junction, then junction -> goal root."""
        start_part = list(reversed(start_tree.path_to_root(start_node)))
        goal_part = goal_tree.path_to_root(goal_node)
        if input_dist(start_part[-1], goal_part[0]) <= opts.joint_solve_dist:
            if len(start_part) > 1 and self._merge_junction(checker, start_part[-1], goal_part[0],
                                                            start_part[-2], goal_part[0]):
                start_part = start_part[:-1]
            elif len(goal_part) > 1 and self._merge_junction(checker, goal_part[0], start_part[-1],
                                                             start_part[-1], goal_part[1]):
                goal_part = goal_part[1:]
        return start_part + goal_part
