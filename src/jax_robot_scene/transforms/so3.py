"""SO(3) rotation helpers in JAX.

Rotations are plain (..., 3, 3) matrices. The functions here are the small
subset the scene builder needs: building elemental rotations from an
axis-angle vector, composing them, and handing orientations to engines that
expect quaternions.
"""

import jax
import jax.numpy as jnp

Array = jax.Array


def exp(log_r: Array) -> Array:
    """
    SO(3) exponential map: convert axis-angle vector to rotation matrix.

    Uses Rodrigues' formula on the unnormalized skew matrix,
    R = I + a(θ) K + b(θ) K² with a = sin(θ)/θ and b = (1 - cos(θ))/θ²,
    switching to their Taylor series near zero so tiny angles keep their
    first-order term and a zero angle yields exactly the identity.

    Args:
        log_r: (..., 3) array of axis-angle vectors

    Returns:
        (..., 3, 3) array of rotation matrices
    """
    log_r = jnp.asarray(log_r, dtype=float)
    angle = jnp.linalg.norm(log_r, axis=-1, keepdims=True)
    small_angle = angle < 1e-4
    safe_angle = jnp.where(small_angle, 1.0, angle)
    angle_sq = angle**2

    a = jnp.where(small_angle, 1.0 - angle_sq / 6.0, jnp.sin(safe_angle) / safe_angle)
    b = jnp.where(small_angle, 0.5 - angle_sq / 24.0, (1.0 - jnp.cos(safe_angle)) / safe_angle**2)

    K = skew_symmetric(log_r)
    I = jnp.broadcast_to(jnp.eye(3, dtype=log_r.dtype), log_r.shape[:-1] + (3, 3))

    return I + a[..., None] * K + b[..., None] * jnp.matmul(K, K)


def from_axis_angle(axis: Array, angle) -> Array:
    """Rotation of ``angle`` radians about ``axis`` (need not be unit length)."""
    axis = jnp.asarray(axis, dtype=float)
    norm = jnp.linalg.norm(axis, axis=-1, keepdims=True)
    unit = axis / jnp.where(norm > 0.0, norm, 1.0)
    return exp(unit * jnp.asarray(angle, dtype=float)[..., None])


def multiply(R1: Array, R2: Array) -> Array:
    """Return R1 @ R2 (apply R2 first, then R1)."""
    return jnp.matmul(R1, R2)


def apply(R: Array, v: Array) -> Array:
    """Rotate vector(s) v of shape (..., 3) by R."""
    return jnp.einsum('...ij,...j->...i', R, v)


def skew_symmetric(v: Array) -> Array:
    """
    Convert 3D vector to skew-symmetric (cross-product) matrix.

    Args:
        v: (..., 3) vector

    Returns:
        (..., 3, 3) skew-symmetric matrix
    """
    zeros = jnp.zeros(v.shape[:-1], dtype=v.dtype)

    return jnp.stack([
        jnp.stack([zeros, -v[..., 2], v[..., 1]], axis=-1),
        jnp.stack([v[..., 2], zeros, -v[..., 0]], axis=-1),
        jnp.stack([-v[..., 1], v[..., 0], zeros], axis=-1)
    ], axis=-2)


def to_quaternion(matrix: Array) -> Array:
    """
    Convert rotation matrices to unit quaternions in (w, x, y, z) order.

    Picks the numerically best of the four classic extraction branches per
    matrix and returns the representative with non-negative w.

    Args:
        matrix: (..., 3, 3) array of rotation matrices

    Returns:
        (..., 4) array of quaternions
    """
    m = matrix
    trace = m[..., 0, 0] + m[..., 1, 1] + m[..., 2, 2]
    eps = jnp.finfo(m.dtype).eps

    candidates = [
        (1.0 + trace,
         [trace + 1.0, m[..., 2, 1] - m[..., 1, 2], m[..., 0, 2] - m[..., 2, 0], m[..., 1, 0] - m[..., 0, 1]]),
        (1.0 + m[..., 0, 0] - m[..., 1, 1] - m[..., 2, 2],
         [m[..., 2, 1] - m[..., 1, 2], 1.0 + m[..., 0, 0] - m[..., 1, 1] - m[..., 2, 2], m[..., 0, 1] + m[..., 1, 0], m[..., 0, 2] + m[..., 2, 0]]),
        (1.0 + m[..., 1, 1] - m[..., 0, 0] - m[..., 2, 2],
         [m[..., 0, 2] - m[..., 2, 0], m[..., 0, 1] + m[..., 1, 0], 1.0 + m[..., 1, 1] - m[..., 0, 0] - m[..., 2, 2], m[..., 1, 2] + m[..., 2, 1]]),
        (1.0 + m[..., 2, 2] - m[..., 0, 0] - m[..., 1, 1],
         [m[..., 1, 0] - m[..., 0, 1], m[..., 0, 2] + m[..., 2, 0], m[..., 1, 2] + m[..., 2, 1], 1.0 + m[..., 2, 2] - m[..., 0, 0] - m[..., 1, 1]]),
    ]
    quats = [
        jnp.stack(parts, axis=-1) * 0.5 / jnp.sqrt(jnp.maximum(scale, eps))[..., None]
        for scale, parts in candidates
    ]

    mask0 = trace > 0
    mask1 = (~mask0) & (m[..., 0, 0] > m[..., 1, 1]) & (m[..., 0, 0] > m[..., 2, 2])
    mask2 = (~mask0) & (~mask1) & (m[..., 1, 1] > m[..., 2, 2])
    mask3 = (~mask0) & (~mask1) & (~mask2)

    quaternion = sum(
        jnp.where(mask[..., None], q, 0.0)
        for mask, q in zip((mask0, mask1, mask2, mask3), quats)
    )
    quaternion = jnp.where(quaternion[..., 0:1] < 0, -quaternion, quaternion)
    return quaternion / jnp.linalg.norm(quaternion, axis=-1, keepdims=True)
