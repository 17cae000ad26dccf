"""Kinematic tree construction and posing.

:func:`build_tree` turns the parser's flat lookup tables into a tree of link
and joint nodes, converting every transform to scene convention on the way,
and records each revolute joint by actuation index. :func:`forward_kinematics`
poses a built tree for a set of joint angles.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Set

import jax.numpy as jnp
from jax import Array

from .core import (
    CollisionPrimitive,
    CyclicDescriptionError,
    DiagnosticKind,
    Diagnostics,
    Joint,
    JointNode,
    KinematicTree,
    LinkNode,
    ParseResult,
    RevoluteJoints,
    VisualPrimitive,
    ZeroAxisError,
)
from .io.resources import MeshResolver, identity_resolver
from .transforms import se3, so3
from .transforms.convention import convert_position, convert_rotation, convert_transform, normalize_axis

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    """Output of :func:`build_tree`.

    Attributes:
        tree: the node hierarchy; ``tree.root`` is None if the root link was
              not found.
        revolute_joints: revolute joints by actuation index, pointing into
                         ``tree``.
        diagnostics: problems recovered from while building.
    """
    tree: KinematicTree
    revolute_joints: RevoluteJoints
    diagnostics: Diagnostics = field(default_factory=Diagnostics)


def build_tree(root_link: str, parsed: ParseResult, resolver: Optional[MeshResolver] = None) -> BuildResult:
    """Build the kinematic tree rooted at ``root_link``.

    Links are visited depth first, child joints in the order they were
    declared. Missing links, missing joints and meshes the resolver cannot
    find are skipped and reported in the diagnostics. A link that is the
    child of more than one joint is built under the first one reached; the
    other joints get no child and a ``DUPLICATE_NAME`` diagnostic.

    Args:
        root_link: name of the link to start from.
        parsed: output of the URDF parser.
        resolver: maps normalized mesh paths to mesh resources; by default
                  every path resolves to itself.

    Returns:
        BuildResult with the tree, the revolute joint registry and
        diagnostics.

    Raises:
        CyclicDescriptionError: if a link is reached again from one of its
                                own descendants.
    """
    builder = _TreeBuilder(parsed, resolver or identity_resolver)
    root = builder.build(root_link)
    if root is None:
        logger.warning("Root link '%s' not found, tree is empty", root_link)

    tree = KinematicTree(root)
    logger.debug(
        "Built tree from '%s': %d revolute joints, %d diagnostics",
        root_link, len(builder.revolute_joints), len(builder.diagnostics),
    )
    return BuildResult(tree, builder.revolute_joints, builder.diagnostics)


def joint_rest_rotation(joint: Joint) -> Array:
    """Rest orientation of a joint in scene convention.

    Revolute joints keep only the yaw of their origin, so the joint starts
    from a neutral pose and actuation is the only other rotation applied to
    it. Other joints use the full roll-pitch-yaw.
    """
    if joint.is_revolute:
        return convert_rotation(jnp.array([0.0, 0.0, joint.rpy[2]]))
    return convert_rotation(joint.rpy)


class _TreeBuilder:
    """State for one :func:`build_tree` call."""

    def __init__(self, parsed: ParseResult, resolver: MeshResolver):
        self.parsed = parsed
        self.resolver = resolver
        self.diagnostics = Diagnostics(logger)
        self.revolute_joints = RevoluteJoints()
        self._path: List[str] = []
        self._on_path: Set[str] = set()
        self._built: Set[str] = set()

    def build(self, root_name: str) -> Optional[LinkNode]:
        """Depth-first build from ``root_name`` using an explicit stack.

        Each stack entry is a link node on the current root-to-leaf path and
        the iterator over its remaining child joints, so siblings keep their
        declaration order however deep the chain goes.
        """
        root = self._enter_link(root_name)
        if root is None:
            return None

        stack = [(root, iter(self.parsed.child_joints.get(root_name, ())))]
        while stack:
            node, joint_names = stack[-1]
            joint_name = next(joint_names, None)
            if joint_name is None:
                stack.pop()
                self._on_path.discard(self._path.pop())
                continue

            joint = self.parsed.joints.get(joint_name)
            if joint is None:
                self.diagnostics.add(DiagnosticKind.MISSING_REFERENCE, f"joint '{joint_name}' not found", joint_name)
                continue
            joint_node = node.add_joint(self._make_joint(joint))
            joint_node.child = self._enter_link(joint.child)
            if joint_node.child is not None:
                stack.append((joint_node.child, iter(self.parsed.child_joints.get(joint.child, ()))))
        return root

    def _enter_link(self, link_name: Optional[str]) -> Optional[LinkNode]:
        link = self.parsed.links.get(link_name) if link_name is not None else None
        if link is None:
            self.diagnostics.add(DiagnosticKind.MISSING_REFERENCE, f"link '{link_name}' not found", link_name)
            return None
        if link_name in self._on_path:
            raise CyclicDescriptionError(self._path + [link_name])
        if link_name in self._built:
            self.diagnostics.add(
                DiagnosticKind.DUPLICATE_NAME,
                f"link '{link_name}' is the child of more than one joint, keeping the first",
                link_name,
            )
            return None

        node = LinkNode(link_name)
        self._attach_visuals(link, node)
        self._attach_collisions(link, node)
        self._built.add(link_name)
        self._path.append(link_name)
        self._on_path.add(link_name)
        return node

    def _make_joint(self, joint: Joint) -> JointNode:
        rotation = joint_rest_rotation(joint)
        node = JointNode(
            name=joint.name,
            type=joint.type,
            transform=se3.from_position_and_rotation(convert_position(joint.xyz), rotation),
            index=joint.index,
        )

        if joint.is_revolute:
            try:
                node.axis = normalize_axis(joint.axis)
            except ZeroAxisError:
                self.diagnostics.add(DiagnosticKind.ZERO_AXIS, f"revolute joint '{joint.name}' has no usable axis", joint.name)
                node.axis = jnp.zeros(3)
            self.revolute_joints.register(joint.index, node, rotation, node.axis)
        return node

    def _attach_visuals(self, link, node: LinkNode) -> None:
        for visual in link.visuals:
            if not visual.mesh_path:
                continue
            resource = self._resolve(visual.mesh_path, link.name)
            if resource is None:
                continue
            node.visuals.append(VisualPrimitive(
                mesh_path=visual.mesh_path,
                transform=convert_transform(visual.xyz, visual.rpy),
                resource=resource,
                material=visual.material,
            ))

    def _attach_collisions(self, link, node: LinkNode) -> None:
        for collision in link.collisions:
            transform = convert_transform(collision.xyz, collision.rpy)
            if collision.geometry_type == "mesh":
                if not collision.mesh_path:
                    continue
                resource = self._resolve(collision.mesh_path, link.name)
                if resource is None:
                    continue
                node.collisions.append(CollisionPrimitive(
                    "mesh", transform, mesh_path=collision.mesh_path, resource=resource))
            elif collision.geometry_type == "sphere":
                node.collisions.append(CollisionPrimitive("sphere", transform, radius=collision.radius))
            elif collision.geometry_type == "cylinder":
                node.collisions.append(CollisionPrimitive(
                    "cylinder", transform, radius=collision.radius, length=collision.length))

    def _resolve(self, mesh_path: str, link_name: str):
        try:
            resource = self.resolver(mesh_path)
        except OSError as err:
            logger.debug("Resolver failed on %s: %s", mesh_path, err)
            resource = None
        if resource is None:
            self.diagnostics.add(
                DiagnosticKind.UNRESOLVED_RESOURCE,
                f"mesh '{mesh_path}' of link '{link_name}' could not be resolved",
                mesh_path,
            )
        return resource


def forward_kinematics(tree: KinematicTree, angles: Optional[Mapping[int, float]] = None,
                       base_transform: Optional[Array] = None) -> Dict[str, Array]:
    """World pose of every link node.

    Args:
        tree: a built kinematic tree.
        angles: joint angle in radians by actuation index. Revolute joints
                whose index is missing stay at rest.
        base_transform: pose of the root link; identity by default.

    Returns:
        Dictionary mapping link names to their 4x4 world poses.
    """
    angles = angles or {}
    poses: Dict[str, Array] = {}
    if tree.root is None:
        return poses

    world = se3.identity() if base_transform is None else base_transform
    stack = [(tree.root, world)]
    while stack:
        link, parent_world = stack.pop()
        link_world = se3.multiply(parent_world, link.transform)
        poses[link.name] = link_world

        for joint in reversed(link.joints):
            local = joint.transform
            if joint.is_revolute and joint.index in angles and joint.axis is not None:
                motion = so3.from_axis_angle(joint.axis, angles[joint.index])
                local = se3.with_rotation(local, so3.multiply(joint.rotation, motion))
            if joint.child is not None:
                stack.append((joint.child, se3.multiply(link_world, local)))
    return poses
