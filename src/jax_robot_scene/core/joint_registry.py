"""Canonical joint names and their actuation indices.

URDF joint names such as ``left_hip_pitch_joint`` are canonicalized to
``LeftHipPitch`` and looked up in an index table. The table is injected, so a
different robot only needs a different mapping. :data:`G1_JOINT_INDICES` is
the motor ordering of the Unitree G1 (29 body joints plus the two dexterous
hands).
"""

import logging
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional

from .diagnostics import DiagnosticKind, Diagnostics

logger = logging.getLogger(__name__)

UNMAPPED_INDEX = -1
JOINT_SUFFIX = "_joint"
DELIMITER = "_"

G1_JOINT_INDICES: Mapping[str, int] = MappingProxyType({
    # Left leg
    "LeftHipPitch": 0,
    "LeftHipRoll": 1,
    "LeftHipYaw": 2,
    "LeftKnee": 3,
    "LeftAnklePitch": 4,
    "LeftAnkleRoll": 5,
    # Right leg
    "RightHipPitch": 6,
    "RightHipRoll": 7,
    "RightHipYaw": 8,
    "RightKnee": 9,
    "RightAnklePitch": 10,
    "RightAnkleRoll": 11,
    # Waist
    "WaistYaw": 12,
    "WaistRoll": 13,
    "WaistPitch": 14,
    # Left arm
    "LeftShoulderPitch": 15,
    "LeftShoulderRoll": 16,
    "LeftShoulderYaw": 17,
    "LeftElbow": 18,
    "LeftWristRoll": 19,
    "LeftWristPitch": 20,
    "LeftWristYaw": 21,
    # Right arm
    "RightShoulderPitch": 22,
    "RightShoulderRoll": 23,
    "RightShoulderYaw": 24,
    "RightElbow": 25,
    "RightWristRoll": 26,
    "RightWristPitch": 27,
    "RightWristYaw": 28,
    # Slot reserved by the motor ordering (weight)
    "KNotUsedJoint": 29,
    # Left hand
    "LeftHandThumb0": 30,
    "LeftHandThumb1": 31,
    "LeftHandThumb2": 32,
    "LeftHandMiddle0": 33,
    "LeftHandMiddle1": 34,
    "LeftHandIndex0": 35,
    "LeftHandIndex1": 36,
    # Right hand
    "RightHandThumb0": 37,
    "RightHandThumb1": 38,
    "RightHandThumb2": 39,
    "RightHandMiddle0": 40,
    "RightHandMiddle1": 41,
    "RightHandIndex0": 42,
    "RightHandIndex1": 43,
})


def canonicalize(raw_name: Optional[str]) -> str:
    """Convert a URDF joint name into its canonical form.

    Strips a trailing ``_joint``, splits on ``_`` and capitalizes every
    non-empty segment: ``"left_hip_pitch_joint"`` becomes ``"LeftHipPitch"``.

    A name without any ``_`` only gets its first letter upper-cased, so a name
    that is already canonical comes back unchanged.
    """
    if not raw_name:
        return ""
    if raw_name.endswith(JOINT_SUFFIX):
        raw_name = raw_name[:-len(JOINT_SUFFIX)]
    if DELIMITER not in raw_name:
        return raw_name[:1].upper() + raw_name[1:]
    return "".join(
        part[0].upper() + part[1:].lower()
        for part in raw_name.split(DELIMITER)
        if part
    )


class JointIndexRegistry:
    """Read-only mapping from canonical joint names to actuation indices.

    Args:
        table: canonical name -> non-negative index. Copied on construction.

    Raises:
        ValueError: if an index is negative or used by two names.
    """

    def __init__(self, table: Mapping[str, int]):
        seen: Dict[int, str] = {}
        for name, index in table.items():
            if index < 0:
                raise ValueError(f"joint '{name}' has negative index {index}")
            if index in seen:
                raise ValueError(f"index {index} assigned to both '{seen[index]}' and '{name}'")
            seen[index] = name
        self._table = MappingProxyType(dict(table))
        self._names = MappingProxyType(seen)

    def resolve(self, canonical_name: str, diagnostics: Optional[Diagnostics] = None) -> int:
        """Index for ``canonical_name``, or :data:`UNMAPPED_INDEX` if unknown."""
        index = self._table.get(canonical_name)
        if index is not None:
            return index

        message = f"joint '{canonical_name}' is not in the index table, assigning {UNMAPPED_INDEX}"
        if diagnostics is not None:
            diagnostics.add(DiagnosticKind.UNMAPPED_JOINT, message, canonical_name)
        else:
            logger.warning(message)
        return UNMAPPED_INDEX

    def index_for(self, raw_name: Optional[str], diagnostics: Optional[Diagnostics] = None) -> int:
        """Canonicalize a URDF joint name and resolve it."""
        return self.resolve(canonicalize(raw_name), diagnostics)

    def name_for(self, index: int) -> Optional[str]:
        return self._names.get(index)

    def as_dict(self) -> Dict[str, int]:
        return dict(self._table)

    def __contains__(self, canonical_name) -> bool:
        return canonical_name in self._table

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def __repr__(self) -> str:
        return f"JointIndexRegistry({len(self)} joints)"


_DEFAULT_REGISTRY = JointIndexRegistry(G1_JOINT_INDICES)


def default_registry() -> JointIndexRegistry:
    """Registry over :data:`G1_JOINT_INDICES`, shared and immutable."""
    return _DEFAULT_REGISTRY
