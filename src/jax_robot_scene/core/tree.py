"""Kinematic tree nodes and the revolute joint registry.

The tree alternates link and joint nodes: a :class:`LinkNode` owns its
visual/collision primitives and its child :class:`JointNode` objects, and a
:class:`JointNode` owns at most one child link. All transforms are local
(relative to the parent node) and already in scene convention.

:class:`RevoluteJoints` does not own anything: it points at joint nodes of a
tree so an actuation layer can find them by index.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional

from jax import Array

from jax_robot_scene.core.description import Material, REVOLUTE
from jax_robot_scene.core.joint_registry import UNMAPPED_INDEX
from jax_robot_scene.transforms import se3, so3


@dataclass
class VisualPrimitive:
    """A mesh to render, placed relative to its link."""
    mesh_path: str
    transform: Array
    resource: Any = None
    material: Optional[Material] = None


@dataclass
class CollisionPrimitive:
    """A collision shape placed relative to its link.

    ``shape`` is one of ``"mesh"``, ``"sphere"`` or ``"cylinder"``. For a
    cylinder ``length`` is its height along the local Y axis.
    """
    shape: str
    transform: Array
    radius: float = 0.0
    length: float = 0.0
    mesh_path: Optional[str] = None
    resource: Any = None


@dataclass(eq=False)
class LinkNode:
    name: str
    transform: Array = field(default_factory=se3.identity)
    visuals: List[VisualPrimitive] = field(default_factory=list)
    collisions: List[CollisionPrimitive] = field(default_factory=list)
    joints: List["JointNode"] = field(default_factory=list)

    def add_joint(self, joint: "JointNode") -> "JointNode":
        self.joints.append(joint)
        return joint

    @property
    def child_links(self) -> List["LinkNode"]:
        return [joint.child for joint in self.joints if joint.child is not None]


@dataclass(eq=False)
class JointNode:
    """A joint placed under its parent link.

    Attributes:
        name: joint name.
        type: URDF joint type.
        transform: rest placement relative to the parent link.
        index: actuation index, or -1 when unmapped.
        axis: unit rotation axis for revolute joints, None otherwise.
        child: the child link node, or None if the child link is missing.
    """
    name: str
    type: Optional[str]
    transform: Array
    index: int = UNMAPPED_INDEX
    axis: Optional[Array] = None
    child: Optional[LinkNode] = None

    @property
    def is_revolute(self) -> bool:
        return self.type == REVOLUTE

    @property
    def position(self) -> Array:
        return se3.get_position(self.transform)

    @property
    def rotation(self) -> Array:
        return se3.get_rotation(self.transform)

    @property
    def quaternion(self) -> Array:
        """Rest orientation as a (w, x, y, z) quaternion."""
        return so3.to_quaternion(self.rotation)


@dataclass(frozen=True, eq=False)
class RevoluteJoint:
    """Registry entry for one revolute joint.

    Attributes:
        node: the joint node in the tree (not owned).
        rest_rotation: (3, 3) rest orientation in scene convention.
        axis: (3,) unit rotation axis in scene convention.
    """
    node: JointNode
    rest_rotation: Array
    axis: Array

    @property
    def index(self) -> int:
        return self.node.index

    def rotation_at(self, angle) -> Array:
        """Orientation after turning ``angle`` radians about the axis from rest."""
        return so3.multiply(self.rest_rotation, so3.from_axis_angle(self.axis, angle))

    def transform_at(self, angle) -> Array:
        """Local transform of the joint node at ``angle``."""
        return se3.with_rotation(self.node.transform, self.rotation_at(angle))


class RevoluteJoints:
    """Revolute joints keyed by actuation index.

    Joints with the unmapped index are kept under ``-1`` like any other index;
    use :meth:`mapped` to skip them. Registering an index twice replaces the
    earlier entry.
    """

    def __init__(self):
        self._entries: Dict[int, RevoluteJoint] = {}

    def register(self, index: int, node: JointNode, rest_rotation: Array, axis: Array) -> RevoluteJoint:
        entry = RevoluteJoint(node, rest_rotation, axis)
        self._entries[index] = entry
        return entry

    def get(self, index: int) -> Optional[RevoluteJoint]:
        return self._entries.get(index)

    def mapped(self) -> Dict[int, RevoluteJoint]:
        return {i: e for i, e in self._entries.items() if i != UNMAPPED_INDEX}

    def pose(self, angles: Mapping[int, float]) -> Dict[int, Array]:
        """Rotation of every registered joint whose index appears in ``angles``."""
        return {i: self._entries[i].rotation_at(a) for i, a in angles.items() if i in self._entries}

    def indices(self) -> List[int]:
        return list(self._entries)

    def __getitem__(self, index: int) -> RevoluteJoint:
        return self._entries[index]

    def __contains__(self, index) -> bool:
        return index in self._entries

    def __iter__(self) -> Iterator[int]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def items(self):
        return self._entries.items()


@dataclass
class KinematicTree:
    """Owner of the node hierarchy rooted at ``root``."""
    root: Optional[LinkNode] = None

    def iter_links(self) -> Iterator[LinkNode]:
        """Link nodes in depth-first order, siblings in stored order."""
        for node in self._walk():
            if isinstance(node, LinkNode):
                yield node

    def iter_joints(self) -> Iterator[JointNode]:
        """Joint nodes in depth-first order, siblings in stored order."""
        for node in self._walk():
            if isinstance(node, JointNode):
                yield node

    def find_link(self, name: str) -> Optional[LinkNode]:
        return next((n for n in self.iter_links() if n.name == name), None)

    def find_joint(self, name: str) -> Optional[JointNode]:
        return next((n for n in self.iter_joints() if n.name == name), None)

    def _walk(self):
        if self.root is None:
            return
        stack = [self.root]
        while stack:
            node = stack.pop()
            yield node
            if isinstance(node, LinkNode):
                stack.extend(reversed(node.joints))
            elif node.child is not None:
                stack.append(node.child)
