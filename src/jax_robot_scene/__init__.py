"""
JAX Robot Scene: URDF robots as Y-up scene graphs.

This library parses URDF robot descriptions, converts their geometry to a
Y-up rendering/physics convention and builds a kinematic tree of link and
joint nodes with an index-keyed registry of revolute joints for actuation.
"""

import jax
jax.config.update("jax_enable_x64", True)

# Import core modules
from . import transforms
from . import core
from . import io
from .builder import BuildResult, build_tree, forward_kinematics
from .scene import Scene, SceneConfig, assemble_scene, load_scene

__version__ = "0.1.0"
__all__ = [
    "transforms",
    "core",
    "io",
    "BuildResult",
    "Scene",
    "SceneConfig",
    "assemble_scene",
    "build_tree",
    "forward_kinematics",
    "load_scene",
]
