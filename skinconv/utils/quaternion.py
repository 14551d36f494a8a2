"""
Quaternion operations for joint orientations.

Quaternions are represented as (x, y, z, w) where w is the scalar part
and (x, y, z) is the vector part. This follows the convention:
    q = w + xi + yj + zk

and matches the layout the JSON snapshot hands to the renderer. The identity
rotation is (0, 0, 0, 1).

All operations work on single quaternions of shape (4,) as float64 numpy arrays.
"""

from typing import Sequence
import numpy as np

from ..core.constants import ANTIPARALLEL_EPS, DEFAULT_EPS, DEFAULT_EPS_NORM


def identity_quaternion() -> np.ndarray:
    """Create identity quaternion (no rotation)."""
    return np.array([0.0, 0.0, 0.0, 1.0], dtype=np.float64)


def normalize_quaternion(q: np.ndarray, eps: float = DEFAULT_EPS_NORM) -> np.ndarray:
    """
    Normalize quaternion to unit length.

    Args:
        q: Quaternion (4,) as [x, y, z, w]
        eps: Small constant for numerical stability

    Returns:
        Normalized quaternion (4,)
    """
    q = np.asarray(q, dtype=np.float64)
    return q / max(np.linalg.norm(q), eps)


def quaternion_conjugate(q: np.ndarray) -> np.ndarray:
    """
    Compute quaternion conjugate: q* = w - xi - yj - zk

    For unit quaternions this is the inverse rotation.
    """
    q = np.asarray(q, dtype=np.float64)
    return np.array([-q[0], -q[1], -q[2], q[3]], dtype=np.float64)


def quaternion_multiply(q1: np.ndarray, q2: np.ndarray) -> np.ndarray:
    """
    Compute quaternion product: q1 * q2

    Rotating by the product applies q2 first, then q1.

    Args:
        q1: First quaternion (4,) as [x, y, z, w]
        q2: Second quaternion (4,) as [x, y, z, w]

    Returns:
        Product quaternion (4,)
    """
    x1, y1, z1, w1 = q1
    x2, y2, z2, w2 = q2

    x = w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2
    y = w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2
    z = w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2
    w = w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2

    return np.array([x, y, z, w], dtype=np.float64)


def quaternion_from_axis_angle(axis: Sequence[float], angle: float) -> np.ndarray:
    """
    Create quaternion from axis-angle representation.

    q = sin(θ/2) * (ax*i + ay*j + az*k) + cos(θ/2)

    Args:
        axis: Rotation axis (3,), will be normalized
        angle: Rotation angle in radians

    Returns:
        Unit quaternion (4,) as [x, y, z, w]
    """
    axis = np.asarray(axis, dtype=np.float64)
    norm = np.linalg.norm(axis)
    if norm < DEFAULT_EPS:
        raise ValueError("Rotation axis must have non-zero length")
    half = 0.5 * angle
    xyz = axis / norm * np.sin(half)
    return np.array([xyz[0], xyz[1], xyz[2], np.cos(half)], dtype=np.float64)


def quaternion_to_matrix(q: np.ndarray) -> np.ndarray:
    """
    Convert unit quaternion to 3x3 rotation matrix.

    Args:
        q: Quaternion (4,) as [x, y, z, w], normalized internally

    Returns:
        Rotation matrix (3, 3)
    """
    x, y, z, w = normalize_quaternion(q)

    return np.array([
        [1 - 2 * (y * y + z * z), 2 * (x * y - z * w), 2 * (x * z + y * w)],
        [2 * (x * y + z * w), 1 - 2 * (x * x + z * z), 2 * (y * z - x * w)],
        [2 * (x * z - y * w), 2 * (y * z + x * w), 1 - 2 * (x * x + y * y)],
    ], dtype=np.float64)


def quaternion_from_matrix_rotation(matrix: np.ndarray) -> np.ndarray:
    """
    Extract the rotation of a transform as a unit quaternion.

    Reads the upper-left 3x3 block, removes per-axis scale, and ignores
    translation. Uses Shepperd's method for robustness near 180 degrees.

    Args:
        matrix: 4x4 (or 3x3) transform

    Returns:
        Unit quaternion (4,) as [x, y, z, w]
    """
    R = np.asarray(matrix, dtype=np.float64)[:3, :3].copy()

    # Remove scale from rotation matrix
    scale = np.linalg.norm(R, axis=0)
    R = R / np.maximum(scale, DEFAULT_EPS)

    trace = R[0, 0] + R[1, 1] + R[2, 2]

    if trace > 0:
        s = 0.5 / np.sqrt(trace + 1.0)
        w = 0.25 / s
        x = (R[2, 1] - R[1, 2]) * s
        y = (R[0, 2] - R[2, 0]) * s
        z = (R[1, 0] - R[0, 1]) * s
    elif R[0, 0] > R[1, 1] and R[0, 0] > R[2, 2]:
        s = 2.0 * np.sqrt(1.0 + R[0, 0] - R[1, 1] - R[2, 2])
        w = (R[2, 1] - R[1, 2]) / s
        x = 0.25 * s
        y = (R[0, 1] + R[1, 0]) / s
        z = (R[0, 2] + R[2, 0]) / s
    elif R[1, 1] > R[2, 2]:
        s = 2.0 * np.sqrt(1.0 + R[1, 1] - R[0, 0] - R[2, 2])
        w = (R[0, 2] - R[2, 0]) / s
        x = (R[0, 1] + R[1, 0]) / s
        y = 0.25 * s
        z = (R[1, 2] + R[2, 1]) / s
    else:
        s = 2.0 * np.sqrt(1.0 + R[2, 2] - R[0, 0] - R[1, 1])
        w = (R[1, 0] - R[0, 1]) / s
        x = (R[0, 2] + R[2, 0]) / s
        y = (R[1, 2] + R[2, 1]) / s
        z = 0.25 * s

    return normalize_quaternion(np.array([x, y, z, w], dtype=np.float64))


def quaternion_from_rotation_between(v1: Sequence[float], v2: Sequence[float]) -> np.ndarray:
    """
    Shortest-arc rotation taking direction v1 onto direction v2.

    q = normalize(cross(v1, v2), 1 + dot(v1, v2)) for unit inputs. When the
    vectors are opposite the axis is underdetermined and a 180 degree turn
    about an axis orthogonal to v1 is returned.

    Args:
        v1: Source direction (3,), normalized internally
        v2: Target direction (3,), normalized internally

    Returns:
        Unit quaternion (4,) as [x, y, z, w]

    Raises:
        ValueError: If either vector has zero length
    """
    v1 = np.asarray(v1, dtype=np.float64)
    v2 = np.asarray(v2, dtype=np.float64)
    n1 = np.linalg.norm(v1)
    n2 = np.linalg.norm(v2)
    if n1 < DEFAULT_EPS or n2 < DEFAULT_EPS:
        raise ValueError("Cannot compute rotation between zero-length vectors")
    v1 = v1 / n1
    v2 = v2 / n2

    dot = float(np.dot(v1, v2))
    if 1.0 + dot < ANTIPARALLEL_EPS:
        # Pick the basis axis least aligned with v1 to build an orthogonal axis
        basis = np.eye(3)[np.argmin(np.abs(v1))]
        axis = np.cross(v1, basis)
        axis = axis / np.linalg.norm(axis)
        return np.array([axis[0], axis[1], axis[2], 0.0], dtype=np.float64)

    cross = np.cross(v1, v2)
    return normalize_quaternion(np.array([cross[0], cross[1], cross[2], 1.0 + dot]))


def rotate_vector(v: Sequence[float], q: np.ndarray) -> np.ndarray:
    """
    Rotate a 3D vector by a quaternion.

    v' = q * v * q^{-1} (quaternion sandwich product)

    Args:
        v: Vector (3,)
        q: Unit quaternion (4,) as [x, y, z, w]

    Returns:
        Rotated vector (3,)
    """
    v = np.asarray(v, dtype=np.float64)
    v_quat = np.array([v[0], v[1], v[2], 0.0], dtype=np.float64)
    result = quaternion_multiply(quaternion_multiply(q, v_quat), quaternion_conjugate(q))
    return result[:3]
