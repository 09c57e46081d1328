"""
Visualization tools for motion planning results using Plotly and Matplotlib.
"""

import numpy as np
import matplotlib.pyplot as plt
import plotly.graph_objects as go
from plotly.subplots import make_subplots
import plotly.express as px
from typing import List, Optional, Sequence
import logging

from .tree import Tree

logger = logging.getLogger(__name__)

# Type aliases
JointPath = List[np.ndarray]


class PlanningVisualizer:
    """Main visualization class for planned paths and search trees."""

    def __init__(self, model=None):
        """
        Initialize visualizer.

        Args:
            model: Optional kinematic model for end-effector plots
        """
        self.model = model
        self.colors = {
            'path': 'blue',
            'start': 'green',
            'goal': 'red',
            'tree_a': 'lightblue',
            'tree_b': 'orange',
        }

    def _end_effector_positions(self, configs: Sequence[np.ndarray]) -> np.ndarray:
        if self.model is None:
            raise ValueError("a kinematic model is required for end-effector plots")
        return np.array([self.model.forward_kinematics(q).position for q in configs]).reshape(-1, 3)

    def plot_joint_path(self, path: JointPath, save_path: Optional[str] = None,
                        show_interpolation: bool = False) -> go.Figure:
        """
        Plot joint values along a path, one subplot row per view.

        Args:
            path: Joint path to plot
            save_path: Optional path to save the plot as HTML
            show_interpolation: Also plot per-waypoint joint steps

        Returns:
            Plotly figure
        """
        positions = np.array(path)
        waypoints = np.arange(len(positions))

        subplot_titles = ['Joint Positions']
        if show_interpolation:
            subplot_titles.append('Joint Steps')
        fig = make_subplots(rows=len(subplot_titles), cols=1, subplot_titles=subplot_titles,
                            vertical_spacing=0.08)

        joint_names = [f'Joint {i+1}' for i in range(positions.shape[1])]
        colors = px.colors.qualitative.Set1

        for i, joint_name in enumerate(joint_names):
            color = colors[i % len(colors)]
            fig.add_trace(
                go.Scatter(x=waypoints, y=positions[:, i], name=joint_name,
                           mode='lines+markers', line=dict(color=color)),
                row=1, col=1
            )
            if show_interpolation and len(positions) > 1:
                fig.add_trace(
                    go.Bar(x=waypoints[1:], y=np.diff(positions[:, i]), name=f'{joint_name} Step',
                           marker=dict(color=color), showlegend=False),
                    row=2, col=1
                )

        fig.update_layout(title='Joint Space Path', height=300 * len(subplot_titles), showlegend=True)
        fig.update_xaxes(title_text='Waypoint')
        fig.update_yaxes(title_text='Position (rad)', row=1, col=1)
        if show_interpolation:
            fig.update_yaxes(title_text='Step (rad)', row=2, col=1)

        if save_path:
            fig.write_html(save_path)
            logger.info(f"Joint path plot saved to {save_path}")

        return fig

    def plot_end_effector_path(self, path: JointPath, save_path: Optional[str] = None,
                               show_orientation: bool = False) -> go.Figure:
        """
        Plot the 3D end-effector path traced by a joint path.

        Args:
            path: Joint path
            save_path: Optional path to save the plot as HTML
            show_orientation: Whether to show orientation frames at waypoints

        Returns:
            Plotly figure
        """
        fig = go.Figure()
        positions = self._end_effector_positions(path)

        if len(positions) > 0:
            fig.add_trace(go.Scatter3d(
                x=positions[:, 0], y=positions[:, 1], z=positions[:, 2],
                mode='lines+markers',
                line=dict(color=self.colors['path'], width=4),
                marker=dict(size=3),
                name='Path'
            ))
            fig.add_trace(go.Scatter3d(
                x=[positions[0, 0]], y=[positions[0, 1]], z=[positions[0, 2]],
                mode='markers',
                marker=dict(size=10, color=self.colors['start'], symbol='circle'),
                name='Start'
            ))
            fig.add_trace(go.Scatter3d(
                x=[positions[-1, 0]], y=[positions[-1, 1]], z=[positions[-1, 2]],
                mode='markers',
                marker=dict(size=10, color=self.colors['goal'], symbol='square'),
                name='Goal'
            ))

            if show_orientation:
                rotations = [self.model.forward_kinematics(q).rotation for q in path]
                self._add_orientation_frames(fig, positions, rotations)

        fig.update_layout(
            title='End-Effector Path',
            scene=dict(xaxis_title='X (m)', yaxis_title='Y (m)', zaxis_title='Z (m)', aspectmode='data'),
            width=800,
            height=600
        )

        if save_path:
            fig.write_html(save_path)
            logger.info(f"End-effector path plot saved to {save_path}")

        return fig

    def plot_planning_trees(self, start_tree: Tree, goal_tree: Tree,
                            path: Optional[JointPath] = None,
                            save_path: Optional[str] = None) -> go.Figure:
        """
        Plot CBiRRT search trees in end-effector space with optional solution path.

        Args:
            start_tree: Tree grown from the start configuration
            goal_tree: Tree grown from the goal IK solutions
            path: Optional solution path
            save_path: Optional save path

        Returns:
            Plotly figure
        """
        fig = go.Figure()

        self._plot_tree_edges(fig, start_tree, self.colors['tree_a'], 'Start Tree')
        self._plot_tree_edges(fig, goal_tree, self.colors['tree_b'], 'Goal Tree')

        roots = self._end_effector_positions([goal_tree.config(i) for i in goal_tree.roots()])
        if len(roots):
            fig.add_trace(go.Scatter3d(
                x=roots[:, 0], y=roots[:, 1], z=roots[:, 2],
                mode='markers',
                marker=dict(size=6, color=self.colors['goal'], symbol='diamond'),
                name='Goal Roots'
            ))

        if path:
            positions = self._end_effector_positions(path)
            fig.add_trace(go.Scatter3d(
                x=positions[:, 0], y=positions[:, 1], z=positions[:, 2],
                mode='lines+markers',
                line=dict(color=self.colors['path'], width=6),
                marker=dict(size=4),
                name='Solution Path'
            ))

        fig.update_layout(
            title='CBiRRT Planning Trees',
            scene=dict(xaxis_title='X (m)', yaxis_title='Y (m)', zaxis_title='Z (m)', aspectmode='data'),
            width=900,
            height=700
        )

        if save_path:
            fig.write_html(save_path)
            logger.info(f"Planning tree plot saved to {save_path}")

        return fig

    def _plot_tree_edges(self, fig: go.Figure, tree: Tree, color: str, name: str):
        """Add tree edges to plotly figure."""
        edges = tree.edges()
        if not edges:
            return

        positions = self._end_effector_positions(tree.configs())
        x_coords, y_coords, z_coords = [], [], []
        for child, parent in edges:
            p1, p2 = positions[parent], positions[child]
            x_coords.extend([p1[0], p2[0], None])
            y_coords.extend([p1[1], p2[1], None])
            z_coords.extend([p1[2], p2[2], None])

        fig.add_trace(go.Scatter3d(
            x=x_coords, y=y_coords, z=z_coords,
            mode='lines',
            line=dict(color=color, width=1),
            name=name,
            hoverinfo='skip'
        ))

    def _add_orientation_frames(self, fig: go.Figure, positions: np.ndarray,
                                orientations: List[np.ndarray], scale: float = 0.05):
        """Add orientation frames to plotly figure."""
        colors = ['red', 'green', 'blue']  # X, Y, Z axes

        for pos, R in zip(positions, orientations):
            for i, color in enumerate(colors):
                axis = R[:, i] * scale
                fig.add_trace(go.Scatter3d(
                    x=[pos[0], pos[0] + axis[0]],
                    y=[pos[1], pos[1] + axis[1]],
                    z=[pos[2], pos[2] + axis[2]],
                    mode='lines',
                    line=dict(color=color, width=3),
                    showlegend=False,
                    hoverinfo='skip'
                ))


def plot_joint_path_static(path: JointPath, joint_limits: Optional[np.ndarray] = None,
                           save_path: Optional[str] = None):
    """
    Static matplotlib plot of a joint path, for reports and headless runs.

    Args:
        path: Joint path
        joint_limits: Optional (n_joints, 2) limits drawn as dashed lines
        save_path: Optional image path

    Returns:
        Matplotlib figure
    """
    positions = np.array(path)
    n_joints = positions.shape[1]

    fig, axes = plt.subplots(n_joints, 1, figsize=(8, 1.8 * n_joints), sharex=True, squeeze=False)
    for i, ax in enumerate(axes[:, 0]):
        ax.plot(positions[:, i], 'o-', markersize=3)
        if joint_limits is not None:
            ax.axhline(joint_limits[i, 0], color='gray', linestyle='--', linewidth=0.8)
            ax.axhline(joint_limits[i, 1], color='gray', linestyle='--', linewidth=0.8)
        ax.set_ylabel(f'J{i+1} (rad)')
        ax.grid(True, alpha=0.3)
    axes[-1, 0].set_xlabel('Waypoint')
    fig.suptitle('Joint Space Path')
    fig.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=100)
        logger.info(f"Static joint path plot saved to {save_path}")

    return fig
