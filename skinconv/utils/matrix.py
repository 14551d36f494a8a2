"""
4x4 matrix and vector operations for skeleton transforms.

Matrices are float64 arrays of shape (4, 4) in math layout M[row, col], acting
on column vectors:
    p' = M @ p

so ``multiply(A, B)`` applies B first, then A. The skeleton builder and the pose
evaluator both compose transforms as ``parent_world @ local``.
"""

from typing import List, Sequence
import numpy as np

from ..core.constants import SINGULAR_EPS, DEFAULT_EPS, MATRIX_SIZE
from ..core.exceptions import ParseError, SingularMatrixError


def identity_matrix() -> np.ndarray:
    """Return a fresh 4x4 identity matrix."""
    return np.eye(4, dtype=np.float64)


def transpose(matrix: np.ndarray) -> np.ndarray:
    """
    Swap rows and columns.

    Converts between the row-major flattening used by COLLADA text and the
    column-major flattening used by the JSON snapshot.
    """
    return np.ascontiguousarray(np.asarray(matrix, dtype=np.float64).T)


def multiply(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """
    Matrix product a @ b.

    Not commutative: the result applies b's transform first, then a's.
    """
    return np.asarray(a, dtype=np.float64) @ np.asarray(b, dtype=np.float64)


def invert(matrix: np.ndarray) -> np.ndarray:
    """
    General 4x4 inverse.

    Raises:
        SingularMatrixError: If the determinant is (close to) zero
    """
    matrix = np.asarray(matrix, dtype=np.float64)
    det = np.linalg.det(matrix)
    if not np.isfinite(det) or abs(det) < SINGULAR_EPS:
        raise SingularMatrixError(f"Matrix is not invertible (det={det:.3e})")
    return np.linalg.inv(matrix)


def compose_delta(anim_matrix: np.ndarray, bind_matrix: np.ndarray) -> np.ndarray:
    """
    Incremental transform an animated pose applies on top of the bind pose.

    delta = anim @ inverse(bind), so that delta @ bind == anim.
    """
    return multiply(anim_matrix, invert(bind_matrix))


def transform_point(matrix: np.ndarray, point: Sequence[float] = (0.0, 0.0, 0.0)) -> np.ndarray:
    """
    Transform a 3D point (w=1) and return the (3,) result.

    With the default origin this extracts the model-space position of a frame.
    """
    homo = np.append(np.asarray(point, dtype=np.float64), 1.0)
    result = np.asarray(matrix, dtype=np.float64) @ homo
    if abs(result[3]) > DEFAULT_EPS:
        return result[:3] / result[3]
    return result[:3]


def translation_matrix(tx: float, ty: float, tz: float) -> np.ndarray:
    """Pure translation transform."""
    m = identity_matrix()
    m[:3, 3] = [tx, ty, tz]
    return m


def scale_matrix(sx: float, sy: float, sz: float) -> np.ndarray:
    """Pure scaling transform."""
    return np.diag([sx, sy, sz, 1.0]).astype(np.float64)


def axis_angle_matrix(axis: Sequence[float], angle: float) -> np.ndarray:
    """
    Rotation transform of ``angle`` radians about ``axis`` (Rodrigues formula).

    Args:
        axis: Rotation axis (3,), normalized internally
        angle: Angle in radians, counter-clockwise looking down the axis

    Returns:
        4x4 rotation matrix
    """
    axis = np.asarray(axis, dtype=np.float64)
    norm = np.linalg.norm(axis)
    if norm < DEFAULT_EPS:
        raise ValueError("Rotation axis must have non-zero length")
    x, y, z = axis / norm
    c = np.cos(angle)
    s = np.sin(angle)
    t = 1.0 - c

    m = identity_matrix()
    m[:3, :3] = [
        [t * x * x + c, t * x * y - s * z, t * x * z + s * y],
        [t * x * y + s * z, t * y * y + c, t * y * z - s * x],
        [t * x * z - s * y, t * y * z + s * x, t * z * z + c],
    ]
    return m


# =============================================================================
# Flat Layout Conversion
# =============================================================================

def parse_matrix_values(values: Sequence[float]) -> np.ndarray:
    """
    Build a matrix from 16 row-major floats (COLLADA ``<matrix>`` text order).

    Raises:
        ParseError: If there are not exactly 16 values
    """
    if len(values) != MATRIX_SIZE:
        raise ParseError(f"Expected {MATRIX_SIZE} matrix values, got {len(values)}")
    return np.asarray(values, dtype=np.float64).reshape(4, 4)


def matrices_from_values(values: Sequence[float]) -> np.ndarray:
    """
    Split a flat row-major float array into a stack of matrices.

    Returns:
        (N, 4, 4) array

    Raises:
        ParseError: If the value count is not a multiple of 16
    """
    if len(values) % MATRIX_SIZE != 0:
        raise ParseError(
            f"Matrix array length {len(values)} is not a multiple of {MATRIX_SIZE}"
        )
    return np.asarray(values, dtype=np.float64).reshape(-1, 4, 4)


def to_column_major(matrix: np.ndarray) -> List[float]:
    """Flatten to 16 floats, column-major (index r + c*4)."""
    return transpose(matrix).ravel().tolist()


def from_column_major(values: Sequence[float]) -> np.ndarray:
    """Inverse of :func:`to_column_major`."""
    return transpose(parse_matrix_values(values))
