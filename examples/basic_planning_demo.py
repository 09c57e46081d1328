#!/usr/bin/env python3
"""
Basic planning demonstration showing unconstrained and orientation-constrained CBiRRT planning.
"""

import numpy as np
import sys
import os
import logging

# Add motionplan to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from motionplan import (CBiRRTPlanner, PlannerOptions, PlanningError, PoseComponents,
                        load_chain, load_config, orientation_constraint,
                        orientation_region_distance, pose_flex_ov_metric)
from motionplan.unit_converter import UnitConverter
from motionplan.visualization import PlanningVisualizer

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

HOME7 = np.zeros(7)


def demo_simple_motion(planner, chain):
    """Plan to a pose record with the tool pointing down."""
    print("\n" + "="*50)
    print("SIMPLE MOTION DEMO")
    print("="*50)

    goal = PoseComponents(x=206, y=100, z=120, oz=-1)
    print(f"Goal pose record: {goal}")

    options = PlannerOptions.from_config(load_config())
    report = planner.plan_detailed(goal, HOME7, options)

    print(f"✅ Path found with {len(report.path)} waypoints "
          f"({report.iterations} iterations, {report.planning_time:.2f}s)")
    print(f"Path length: {report.path_length:.3f} rad")
    print(f"Goal reached at: {chain.forward_kinematics(report.path[-1])}")
    return report


def demo_constrained_motion(planner, chain):
    """Plan while keeping the tool axis within 0.1 rad of pointing down."""
    print("\n" + "="*50)
    print("ORIENTATION CONSTRAINED DEMO")
    print("="*50)

    goal_record = PoseComponents(x=-206, y=100, z=120, oz=-1)
    goal = UnitConverter.components_to_pose(goal_record)

    options = PlannerOptions.from_config(load_config())
    in_cone = orientation_region_distance(goal.rotation, 0.1)
    options.set_metric(pose_flex_ov_metric(goal, 0.09))
    options.set_path_dist(lambda a, b: in_cone(a.rotation))
    options.add_constraint("orientation", orientation_constraint(lambda R: in_cone(R) == 0))

    # Start from a configuration already pointing down
    start = planner.plan(UnitConverter.components_to_pose(PoseComponents(x=206, y=100, z=120, oz=-1)),
                         HOME7, PlannerOptions())[-1]
    report = planner.plan_detailed(goal, start, options)

    print(f"✅ Constrained path found with {len(report.path)} waypoints")
    for name, count in report.rejections.items():
        print(f"  {count} extensions rejected by '{name}'")
    return report


def demo_visualization(chain, report):
    """Save interactive plots of the last plan."""
    print("\n" + "="*50)
    print("VISUALIZATION DEMO")
    print("="*50)

    visualizer = PlanningVisualizer(chain)
    visualizer.plot_joint_path(report.path, save_path="joint_path.html", show_interpolation=True)
    print("✅ Joint path plot saved to 'joint_path.html'")
    visualizer.plot_end_effector_path(report.path, save_path="end_effector_path.html")
    print("✅ End-effector path plot saved to 'end_effector_path.html'")
    if report.start_tree is not None:
        visualizer.plot_planning_trees(report.start_tree, report.goal_tree, report.path,
                                       save_path="planning_trees.html")
        print("✅ Planning tree plot saved to 'planning_trees.html'")

    print("\n📊 Open the HTML files in your browser to view the visualizations!")


def main():
    """Run all demonstrations."""
    print("🤖 Motion Planning Library - Basic Demonstrations")

    chain = load_chain("xarm7")
    try:
        with CBiRRTPlanner(chain, parallelism=max(1, (os.cpu_count() or 4) // 4)) as planner:
            demo_simple_motion(planner, chain)
            report = demo_constrained_motion(planner, chain)
        demo_visualization(chain, report)

        print("\n" + "="*50)
        print("🎉 ALL DEMONSTRATIONS COMPLETED!")
        print("="*50)
        print("\n💡 Next steps:")
        print("- Customize planning parameters in config/default_config.yaml")
        print("- Try the ur5e chain or your own chain YAML")

    except KeyboardInterrupt:
        print("\n\n⏹️  Demo interrupted by user")
    except PlanningError as e:
        print(f"\n❌ Planning failed ({e.result.value}): {e}")


if __name__ == "__main__":
    main()
