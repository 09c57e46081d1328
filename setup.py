#!/usr/bin/env python3
"""
Setup script for motionplan package.
"""

import os

from setuptools import setup, find_packages

long_description = "Constrained bidirectional RRT motion planning for robot arms"
if os.path.exists("README.md"):
    with open("README.md", "r", encoding="utf-8") as fh:
        long_description = fh.read()

setup(
    name="motionplan",
    version="1.0.0",
    author="Robot Planning Team",
    author_email="team@robotplanning.com",
    description="Constrained bidirectional RRT (CBiRRT) motion planner for robot manipulators",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/robotplanning/motionplan",
    packages=find_packages(include=["motionplan", "motionplan.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
        "Topic :: Scientific/Engineering :: Mathematics",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    python_requires=">=3.8",
    install_requires=[
        "numpy>=1.20.0",
        "scipy>=1.7.0",
        "matplotlib>=3.3.0",
        "plotly>=5.0.0",
        "pyyaml>=5.4.0",
    ],
    extras_require={
        "dev": [
            "pytest>=6.0",
            "pytest-cov>=2.0",
            "black>=21.0",
            "flake8>=3.8",
            "mypy>=0.800",
        ],
    },
    include_package_data=True,
    package_data={
        "motionplan": ["config/*.yaml", "config/chains/*.yaml"],
    },
)
