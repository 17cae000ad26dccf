"""Tests for joint name canonicalization and the joint index registry."""

import logging

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from jax_robot_scene.core import (
    G1_JOINT_INDICES,
    UNMAPPED_INDEX,
    DiagnosticKind,
    Diagnostics,
    JointIndexRegistry,
    canonicalize,
    default_registry,
)

raw_names = st.text(alphabet="abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_", max_size=30)


@pytest.mark.parametrize("raw, expected", [
    ("left_hip_pitch_joint", "LeftHipPitch"),
    ("waist_yaw_joint", "WaistYaw"),
    ("left_hand_thumb_0_joint", "LeftHandThumb0"),
    ("LEFT_KNEE_joint", "LeftKnee"),
    ("right__elbow_joint", "RightElbow"),
    ("_leading_underscore", "LeadingUnderscore"),
    ("imu_in_torso_joint", "ImuInTorso"),
    ("knee", "Knee"),
    ("LeftHipPitch", "LeftHipPitch"),
    ("_joint", ""),
    ("", ""),
    (None, ""),
])
def test_canonicalize(raw, expected):
    assert canonicalize(raw) == expected


def test_canonicalize_only_strips_suffix_once():
    assert canonicalize("a_joint_joint") == "AJoint"


@given(raw_names)
@settings(deadline=None)
def test_canonicalize_is_idempotent(raw):
    """A canonical name maps to itself."""
    canonical = canonicalize(raw)
    assert canonicalize(canonical) == canonical
    assert "_" not in canonical


def test_every_g1_name_is_canonical():
    for name in G1_JOINT_INDICES:
        assert canonicalize(name) == name


def test_g1_table():
    registry = default_registry()
    assert len(registry) == 44
    assert sorted(G1_JOINT_INDICES.values()) == list(range(44))
    assert registry.resolve("LeftHipPitch") == 0
    assert registry.resolve("WaistYaw") == 12
    assert registry.resolve("RightHandIndex1") == 43
    assert registry.name_for(18) == "LeftElbow"
    assert registry.name_for(99) is None
    assert "LeftKnee" in registry
    assert default_registry() is registry


def test_index_for_raw_name():
    registry = default_registry()
    assert registry.index_for("left_hip_pitch_joint") == 0
    assert registry.index_for("right_wrist_yaw_joint") == 28
    assert registry.index_for("left_hand_middle_1_joint") == 34


def test_unknown_name_records_diagnostic():
    diagnostics = Diagnostics()
    assert default_registry().resolve("NotARealJoint", diagnostics) == UNMAPPED_INDEX

    unmapped = diagnostics.of_kind(DiagnosticKind.UNMAPPED_JOINT)
    assert len(unmapped) == 1
    assert unmapped[0].subject == "NotARealJoint"


def test_unknown_name_logs_without_collector(caplog):
    with caplog.at_level(logging.WARNING, logger="jax_robot_scene.core.joint_registry"):
        assert default_registry().resolve("NotARealJoint") == -1
    assert "NotARealJoint" in caplog.text


def test_injected_table():
    registry = JointIndexRegistry({"Hinge": 0, "Slider": 1})
    assert registry.index_for("hinge_joint") == 0
    assert registry.index_for("left_hip_pitch_joint", Diagnostics()) == UNMAPPED_INDEX
    assert list(registry) == ["Hinge", "Slider"]


def test_registry_is_immutable():
    table = {"Hinge": 0}
    registry = JointIndexRegistry(table)
    table["Other"] = 1
    assert "Other" not in registry

    copy = registry.as_dict()
    copy["Other"] = 1
    assert "Other" not in registry

    with pytest.raises(TypeError):
        G1_JOINT_INDICES["Extra"] = 44


@pytest.mark.parametrize("table", [
    {"A": -1},
    {"A": 0, "B": 0},
])
def test_registry_rejects_bad_tables(table):
    with pytest.raises(ValueError):
        JointIndexRegistry(table)
