"""Tests for scene assembly."""

import math
from pathlib import Path

import jax.numpy as jnp
import numpy as np

from jax_robot_scene import SceneConfig, assemble_scene, load_scene
from jax_robot_scene.core import DiagnosticKind, JointIndexRegistry
from jax_robot_scene.io import parse_urdf
from jax_robot_scene.scene import CapsuleConfig
from jax_robot_scene.transforms import se3

FIXTURE = Path(__file__).parent / "fixtures" / "g1_lower_body.urdf"


def test_load_scene_defaults():
    scene = load_scene(FIXTURE)

    assert scene.anchor_name == "RobotRoot"
    np.testing.assert_allclose(se3.get_position(scene.transform), [0.0, 0.78, 1.0])
    np.testing.assert_allclose(se3.get_rotation(scene.transform), jnp.eye(3), atol=1e-12)

    body = scene.body_collision
    assert body.name == "BodyCollision"
    assert body.height == 1.4
    assert body.radius == 0.25
    np.testing.assert_allclose(se3.get_position(body.transform), [0.0, 0.7, 0.0])

    assert scene.tree.root.name == "pelvis"
    assert sorted(scene.revolute_joints) == [0, 3, 12]


def test_scene_collects_parse_and_build_diagnostics():
    scene = load_scene(FIXTURE, resolver=lambda path: None)

    kinds = [d.kind for d in scene.diagnostics]
    assert kinds[0] == DiagnosticKind.UNMAPPED_JOINT
    assert kinds.count(DiagnosticKind.UNRESOLVED_RESOURCE) == 3


def test_custom_config():
    config = SceneConfig(
        root_link="torso_link",
        anchor_name="Robot",
        spawn_position=(1.0, 0.0, 0.0),
        spawn_yaw=math.pi / 2,
        body_capsule=CapsuleConfig(height=1.0, radius=0.1, offset=(0.0, 0.5, 0.0)),
    )
    scene = load_scene(FIXTURE, config)

    assert scene.anchor_name == "Robot"
    assert scene.tree.root.name == "torso_link"
    assert [link.name for link in scene.tree.iter_links()] == ["torso_link", "imu_in_torso"]
    assert len(scene.revolute_joints) == 0
    np.testing.assert_allclose(se3.get_position(scene.transform), [1.0, 0.0, 0.0])
    # Yaw turns scene +Z towards +X
    np.testing.assert_allclose(se3.apply(scene.transform, jnp.array([0.0, 0.0, 1.0])), [2.0, 0.0, 0.0], atol=1e-12)
    assert scene.body_collision.radius == 0.1


def test_custom_registry():
    scene = load_scene(FIXTURE, registry=JointIndexRegistry({"WaistYaw": 0}))
    assert list(scene.revolute_joints) == [-1, 0]


def test_assemble_without_root_link():
    scene = assemble_scene(parse_urdf('<robot name="empty"/>'))
    assert scene.tree.root is None
    assert [d.kind for d in scene.diagnostics] == [DiagnosticKind.MISSING_REFERENCE]
