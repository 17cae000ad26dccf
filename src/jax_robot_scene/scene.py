"""Scene assembly: anchor node, body collision capsule and spawn transform.

The kinematic tree is hung under a named anchor placed at the spawn pose,
next to a coarse capsule covering the whole body for cheap collision checks.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple, Union

import jax.numpy as jnp
from jax import Array

from .builder import build_tree
from .core import Diagnostics, JointIndexRegistry, KinematicTree, ParseResult, RevoluteJoints
from .io.resources import MeshResolver
from .io.urdf_parser import load_urdf
from .transforms import se3, so3
from .transforms.convention import UP

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CapsuleConfig:
    """Full-body collision capsule, in scene units and axes."""
    name: str = "BodyCollision"
    height: float = 1.4
    radius: float = 0.25
    offset: Tuple[float, float, float] = (0.0, 0.7, 0.0)


@dataclass(frozen=True)
class SceneConfig:
    """Where and how the robot is placed in the scene.

    Attributes:
        root_link: link the tree is built from.
        anchor_name: name of the node the tree hangs under.
        spawn_position: anchor position in scene coordinates.
        spawn_yaw: anchor rotation about the up axis, in radians.
        body_capsule: full-body collision capsule.
    """
    root_link: str = "pelvis"
    anchor_name: str = "RobotRoot"
    spawn_position: Tuple[float, float, float] = (0.0, 0.78, 1.0)
    spawn_yaw: float = 0.0
    body_capsule: CapsuleConfig = field(default_factory=CapsuleConfig)


@dataclass
class BodyCollision:
    name: str
    height: float
    radius: float
    transform: Array


@dataclass
class Scene:
    """An assembled robot ready for a renderer or physics engine.

    Attributes:
        anchor_name: name of the anchor node.
        transform: world transform of the anchor (the spawn pose).
        body_collision: capsule attached to the anchor.
        tree: kinematic tree attached to the anchor.
        revolute_joints: revolute joints of ``tree`` by actuation index.
        diagnostics: parse and build diagnostics, in that order.
    """
    anchor_name: str
    transform: Array
    body_collision: BodyCollision
    tree: KinematicTree
    revolute_joints: RevoluteJoints
    diagnostics: Diagnostics


def spawn_transform(config: SceneConfig) -> Array:
    return se3.from_position_and_rotation(
        config.spawn_position, so3.exp(UP * config.spawn_yaw))


def assemble_scene(parsed: ParseResult, config: Optional[SceneConfig] = None,
                   resolver: Optional[MeshResolver] = None) -> Scene:
    """Build the tree for ``parsed`` and place it under the scene anchor."""
    config = config or SceneConfig()
    built = build_tree(config.root_link, parsed, resolver)

    capsule = config.body_capsule
    body = BodyCollision(
        name=capsule.name,
        height=capsule.height,
        radius=capsule.radius,
        transform=se3.from_position_and_rotation(capsule.offset, jnp.eye(3)),
    )

    diagnostics = Diagnostics()
    diagnostics.extend(parsed.diagnostics)
    diagnostics.extend(built.diagnostics)

    logger.info(
        "Assembled '%s' under %s: %d links, %d revolute joints",
        parsed.name, config.anchor_name,
        sum(1 for _ in built.tree.iter_links()), len(built.revolute_joints),
    )
    return Scene(
        anchor_name=config.anchor_name,
        transform=spawn_transform(config),
        body_collision=body,
        tree=built.tree,
        revolute_joints=built.revolute_joints,
        diagnostics=diagnostics,
    )


def load_scene(urdf_path: Union[str, Path], config: Optional[SceneConfig] = None,
               resolver: Optional[MeshResolver] = None,
               registry: Optional[JointIndexRegistry] = None) -> Scene:
    """Parse a URDF file and assemble its scene."""
    return assemble_scene(load_urdf(urdf_path, registry), config, resolver)
