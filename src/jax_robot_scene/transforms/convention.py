"""Conversion from the URDF frame convention to the Y-up scene convention.

URDF describes geometry in a right-handed, Z-up frame with roll-pitch-yaw
Euler angles. The scene side is right-handed and Y-up. Positions and axes are
mapped by a cyclic axis permutation, orientations by a fixed sequence of three
elemental rotations.

Every other module goes through these functions; nothing else is allowed to
re-derive the permutation or the rotation order.
"""

import jax
import jax.numpy as jnp

from jax_robot_scene.core.diagnostics import ZeroAxisError
from jax_robot_scene.transforms import se3, so3

Array = jax.Array

UP = jnp.array([0.0, 1.0, 0.0])
NEG_X = jnp.array([-1.0, 0.0, 0.0])
NEG_Z = jnp.array([0.0, 0.0, -1.0])


def convert_position(p) -> Array:
    """Map a URDF vector (x, y, z) to scene coordinates (y, z, x)."""
    p = jnp.asarray(p, dtype=float)
    return jnp.stack([p[..., 1], p[..., 2], p[..., 0]], axis=-1)


def unconvert_position(p) -> Array:
    """Inverse of :func:`convert_position`: (x, y, z) -> (z, x, y)."""
    p = jnp.asarray(p, dtype=float)
    return jnp.stack([p[..., 2], p[..., 0], p[..., 1]], axis=-1)


def convert_rotation(rpy) -> Array:
    """Convert URDF roll-pitch-yaw angles to a scene rotation matrix.

    The rotation is composed intrinsically from three elemental rotations,
    each applied in the frame left by the previous one:

    1. about the scene up axis ``+Y`` by the URDF yaw (``rpy[2]``),
    2. about ``-X`` by the URDF pitch (``rpy[1]``),
    3. about ``-Z`` by the URDF roll (``rpy[0]``).

    That is ``R = Ry(yaw) @ R(-X)(pitch) @ R(-Z)(roll)``. The order and the
    sign flips must stay exactly as written; meshes exported for this frame
    depend on them.

    Args:
        rpy: (3,) roll, pitch, yaw in radians.

    Returns:
        (3, 3) rotation matrix in scene convention.
    """
    roll, pitch, yaw = jnp.asarray(rpy, dtype=float)

    R_yaw = so3.exp(UP * yaw)
    R_pitch = so3.exp(NEG_X * pitch)
    R_roll = so3.exp(NEG_Z * roll)

    return so3.multiply(so3.multiply(R_yaw, R_pitch), R_roll)


def normalize_axis(axis) -> Array:
    """Scale an axis already in scene coordinates to unit length.

    Raises:
        ZeroAxisError: if the axis has zero length.
    """
    axis = jnp.asarray(axis, dtype=float)
    norm = float(jnp.linalg.norm(axis))
    if norm == 0.0:
        raise ZeroAxisError(f"cannot normalize zero-length axis {[float(a) for a in axis]}")
    return axis / norm


def convert_axis(axis) -> Array:
    """Permute a URDF joint axis into scene coordinates and normalize it.

    The permutation preserves length, so this equals permuting the
    normalized axis.

    Raises:
        ZeroAxisError: if the axis has zero length.
    """
    return normalize_axis(convert_position(axis))


def convert_transform(xyz, rpy) -> Array:
    """(4, 4) scene transform for a URDF ``<origin xyz rpy>`` pair."""
    return se3.from_position_and_rotation(convert_position(xyz), convert_rotation(rpy))
