"""SE(3) rigid-body transforms as homogeneous matrices in JAX.

Every node of the kinematic tree carries its local transform as a (4, 4)
matrix built with these helpers.
"""


import jax
import jax.numpy as jnp

Array = jax.Array


def identity() -> Array:
    """The (4, 4) identity transform."""
    return jnp.eye(4)


def from_position_and_rotation(p: Array, R: Array) -> Array:
    """
    Construct SE(3) transform from position and rotation.

    Args:
        p: (..., 3) position vector
        R: (..., 3, 3) rotation matrix

    Returns:
        (..., 4, 4) homogeneous transformation matrix
    """
    p = jnp.asarray(p, dtype=float)
    R = jnp.asarray(R, dtype=float)

    batch_shape = jnp.broadcast_shapes(p.shape[:-1], R.shape[:-2])
    p = jnp.broadcast_to(p, batch_shape + (3,))
    R = jnp.broadcast_to(R, batch_shape + (3, 3))

    T = jnp.zeros(batch_shape + (4, 4), dtype=p.dtype)
    T = T.at[..., :3, :3].set(R)
    T = T.at[..., :3, 3].set(p)
    T = T.at[..., 3, 3].set(1.0)

    return T


def multiply(T1: Array, T2: Array) -> Array:
    """Return T1 @ T2 (apply T2 first, then T1)."""
    return jnp.matmul(T1, T2)


def inverse(T: Array) -> Array:
    """
    Compute inverse of SE(3) transformation matrix.

    Uses the block structure: T^-1 = [[R^T, -R^T @ t], [0, 1]]
    """
    R_inv = jnp.swapaxes(T[..., :3, :3], -1, -2)
    t_inv = -jnp.einsum("...ij,...j->...i", R_inv, T[..., :3, 3])

    return from_position_and_rotation(t_inv, R_inv)


def apply(T: Array, points: Array) -> Array:
    """
    Apply SE(3) transformation to points.

    Args:
        T: (..., 4, 4) transformation matrix
        points: (..., 3) points to transform

    Returns:
        (..., 3) transformed points
    """
    points = jnp.asarray(points, dtype=float)
    ones = jnp.ones_like(points[..., 0:1])
    points_h = jnp.concatenate([points, ones], axis=-1)

    return jnp.einsum("...ij,...j->...i", T, points_h)[..., :3]


def get_position(T: Array) -> Array:
    """Extract the (..., 3) translation of T."""
    return T[..., :3, 3]


def get_rotation(T: Array) -> Array:
    """Extract the (..., 3, 3) rotation block of T."""
    return T[..., :3, :3]


def with_rotation(T: Array, R: Array) -> Array:
    """Copy of T with its rotation block replaced by R, translation kept."""
    return from_position_and_rotation(get_position(T), R)
