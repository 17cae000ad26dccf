"""Core data structures for jax_robot_scene.

Description records as parsed from URDF, the joint index registry, the
diagnostics collector and the kinematic tree node types.
"""

from .description import Collision, Inertial, Joint, Link, Material, ParseResult, Visual
from .diagnostics import (
    CyclicDescriptionError,
    Diagnostic,
    DiagnosticKind,
    Diagnostics,
    MalformedDocumentError,
    SceneError,
    ZeroAxisError,
)
from .joint_registry import (
    G1_JOINT_INDICES,
    UNMAPPED_INDEX,
    JointIndexRegistry,
    canonicalize,
    default_registry,
)
from .tree import (
    CollisionPrimitive,
    JointNode,
    KinematicTree,
    LinkNode,
    RevoluteJoint,
    RevoluteJoints,
    VisualPrimitive,
)

__all__ = [
    "Collision",
    "CollisionPrimitive",
    "CyclicDescriptionError",
    "Diagnostic",
    "DiagnosticKind",
    "Diagnostics",
    "G1_JOINT_INDICES",
    "Inertial",
    "Joint",
    "JointIndexRegistry",
    "JointNode",
    "KinematicTree",
    "Link",
    "LinkNode",
    "MalformedDocumentError",
    "Material",
    "ParseResult",
    "RevoluteJoint",
    "RevoluteJoints",
    "SceneError",
    "UNMAPPED_INDEX",
    "Visual",
    "VisualPrimitive",
    "ZeroAxisError",
    "canonicalize",
    "default_registry",
]
