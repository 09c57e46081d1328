"""
Tests for planning visualization.
"""

import os

import pytest
import numpy as np
import plotly.graph_objects as go

from motionplan.cbirrt import CBiRRTPlanner
from motionplan.tree import Tree
from motionplan.visualization import PlanningVisualizer, plot_joint_path_static


@pytest.fixture
def path():
    return [np.zeros(3), np.array([0.2, 0.1, 0.0]), np.array([0.4, 0.3, -0.2])]


class TestPlanningVisualizer:
    """Test plotly figures."""

    def test_plot_joint_path(self, path):
        fig = PlanningVisualizer().plot_joint_path(path, show_interpolation=True)
        assert isinstance(fig, go.Figure)
        assert len(fig.data) == 6

    def test_plot_end_effector_path(self, planar_arm, path, tmp_path):
        save_path = os.path.join(str(tmp_path), 'ee_path.html')
        fig = PlanningVisualizer(planar_arm).plot_end_effector_path(path, save_path=save_path,
                                                                     show_orientation=True)
        assert os.path.exists(save_path)
        assert np.allclose(fig.data[0].x[0], 0.9)

    def test_end_effector_requires_model(self, path):
        with pytest.raises(ValueError):
            PlanningVisualizer().plot_end_effector_path(path)

    def test_plot_planning_trees(self, planar_arm, fast_options):
        fast_options.try_direct = False
        goal = planar_arm.forward_kinematics(np.array([1.0, -0.5, 0.2]))
        with CBiRRTPlanner(planar_arm) as planner:
            report = planner.plan_detailed(goal, np.zeros(3), fast_options)

        fig = PlanningVisualizer(planar_arm).plot_planning_trees(report.start_tree, report.goal_tree,
                                                                 report.path)
        names = [trace.name for trace in fig.data]
        assert 'Start Tree' in names
        assert 'Goal Roots' in names
        assert 'Solution Path' in names

    def test_plot_single_node_trees(self, planar_arm):
        start_tree, goal_tree = Tree(3), Tree(3)
        start_tree.add_root(np.zeros(3))
        goal_tree.add_root(np.ones(3))
        fig = PlanningVisualizer(planar_arm).plot_planning_trees(start_tree, goal_tree)
        assert [trace.name for trace in fig.data] == ['Goal Roots']


class TestStaticPlots:
    """Test matplotlib output."""

    def test_static_joint_path(self, planar_arm, path, tmp_path):
        save_path = os.path.join(str(tmp_path), 'joint_path.png')
        fig = plot_joint_path_static(path, planar_arm.joint_limits(), save_path=save_path)
        assert os.path.exists(save_path)
        assert len(fig.axes) == 3
