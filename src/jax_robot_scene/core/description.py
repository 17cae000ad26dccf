"""Immutable records for a parsed URDF description.

Everything here is still in the URDF (source) convention: positions and
roll-pitch-yaw angles are stored exactly as read. Conversion to the scene
convention happens when the tree is built. The one exception is
``Joint.axis``, which the parser already permutes (but does not normalize).

Records are ``flax.struct`` dataclasses, so they are frozen and can be handed
to JAX transformations: names and other strings are static fields, numeric
vectors are pytree leaves.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import jax.numpy as jnp
from flax import struct
from jax import Array

from .diagnostics import Diagnostics
from .joint_registry import UNMAPPED_INDEX

REVOLUTE = "revolute"


def _zeros3():
    return jnp.zeros(3)


def _white():
    return jnp.ones(4)


@struct.dataclass
class Material:
    """Named RGBA material."""
    name: Optional[str] = struct.field(pytree_node=False, default=None)
    color: Array = struct.field(default_factory=_white)


@struct.dataclass
class Visual:
    """A ``<visual>`` element.

    Attributes:
        xyz: origin position.
        rpy: origin roll, pitch, yaw.
        mesh_path: normalized mesh filename, or None when the geometry is not
                   a mesh.
        material: inline or referenced material, if any.
    """
    xyz: Array = struct.field(default_factory=_zeros3)
    rpy: Array = struct.field(default_factory=_zeros3)
    mesh_path: Optional[str] = struct.field(pytree_node=False, default=None)
    material: Optional[Material] = None


@struct.dataclass
class Collision:
    """A ``<collision>`` element.

    Only the fields matching ``geometry_type`` are meaningful: ``mesh_path``
    for meshes, ``radius`` for spheres, ``radius`` and ``length`` for
    cylinders.
    """
    xyz: Array = struct.field(default_factory=_zeros3)
    rpy: Array = struct.field(default_factory=_zeros3)
    geometry_type: Optional[str] = struct.field(pytree_node=False, default=None)
    mesh_path: Optional[str] = struct.field(pytree_node=False, default=None)
    radius: float = 0.0
    length: float = 0.0


@struct.dataclass
class Inertial:
    """Inertial frame origin plus scalar properties (``mass``, ``ixx``, ...)."""
    xyz: Array = struct.field(default_factory=_zeros3)
    properties: Dict[str, float] = struct.field(default_factory=dict)


@struct.dataclass
class Link:
    name: str = struct.field(pytree_node=False)
    visuals: Tuple[Visual, ...] = ()
    collisions: Tuple[Collision, ...] = ()
    inertial: Inertial = struct.field(default_factory=Inertial)

    @property
    def has_geometry(self) -> bool:
        return bool(self.visuals or self.collisions)


@struct.dataclass
class Joint:
    """A ``<joint>`` element.

    Attributes:
        name: joint name as written in the URDF.
        type: joint type string; only ``"revolute"`` is treated specially.
        parent: parent link name, or None if the element has no ``<parent>``.
        child: child link name, or None if the element has no ``<child>``.
        xyz: origin position (URDF convention).
        rpy: origin roll, pitch, yaw (URDF convention).
        axis: joint axis, permuted to scene axes but not normalized. Zero when
              the joint has no ``<axis>``.
        limits: every numeric attribute of ``<limit>`` by name.
        index: actuation index from the joint registry, or -1.
    """
    name: str = struct.field(pytree_node=False)
    type: Optional[str] = struct.field(pytree_node=False, default=None)
    parent: Optional[str] = struct.field(pytree_node=False, default=None)
    child: Optional[str] = struct.field(pytree_node=False, default=None)
    xyz: Array = struct.field(default_factory=_zeros3)
    rpy: Array = struct.field(default_factory=_zeros3)
    axis: Array = struct.field(default_factory=_zeros3)
    limits: Dict[str, float] = struct.field(default_factory=dict)
    index: int = struct.field(pytree_node=False, default=UNMAPPED_INDEX)

    @property
    def is_revolute(self) -> bool:
        return self.type == REVOLUTE

    @property
    def is_mapped(self) -> bool:
        return self.index != UNMAPPED_INDEX


@dataclass
class ParseResult:
    """Lookup tables produced by the parser.

    Attributes:
        name: the ``<robot name>`` attribute, if any.
        links: links by name.
        joints: joints by name.
        child_joints: parent link name -> names of its joints, in document
                      order.
        materials: named materials (top-level and inline).
        diagnostics: problems recovered from while parsing.
    """
    name: Optional[str] = None
    links: Dict[str, Link] = field(default_factory=dict)
    joints: Dict[str, Joint] = field(default_factory=dict)
    child_joints: Dict[str, List[str]] = field(default_factory=dict)
    materials: Dict[str, Material] = field(default_factory=dict)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)

    def root_links(self) -> List[str]:
        """Links that are not the child of any joint, in document order."""
        children = {joint.child for joint in self.joints.values()}
        return [name for name in self.links if name not in children]
