"""I/O utilities for loading robot descriptions.

This module provides the URDF parser and the mesh resolvers used to attach
packaged meshes to the kinematic tree.
"""

from .resources import DirectoryMeshResolver, MeshResolver, identity_resolver
from .urdf_parser import load_urdf, normalize_mesh_path, parse_urdf

__all__ = [
    "DirectoryMeshResolver",
    "MeshResolver",
    "identity_resolver",
    "load_urdf",
    "normalize_mesh_path",
    "parse_urdf",
]
