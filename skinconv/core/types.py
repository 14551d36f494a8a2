"""
Type aliases and layout conventions for skinconv.

Layout Conventions:
===================

Matrices
--------
A Matrix4 is a float64 numpy array of shape (4, 4) in math layout M[row, col],
acting on column vectors. Translation lives in M[:3, 3]. Composition reads right
to left: ``parent_world @ local`` applies ``local`` first.

COLLADA stores matrix text row-major, so 16 parsed floats reshape directly to
(4, 4). The JSON snapshot stores matrices column-major (index r + c*4), which is
the transpose of the row-major flattening.

Quaternions
-----------
Quaternions are (4,) arrays ordered [x, y, z, w]; the identity is (0, 0, 0, 1).

Weights
-------
A weight binding is one list per vertex of (joint_index, weight) pairs, sorted
by descending weight.
"""

from typing import Dict, List, Tuple
import numpy as np


# =============================================================================
# Geometry Type Aliases
# =============================================================================

# (4, 4) float64 transform, M[row, col]
Matrix4 = np.ndarray

# (3,) float64 vector
Vector3 = np.ndarray

# (4,) float64 vector or homogeneous point
Vector4 = np.ndarray

# (4,) float64 quaternion as [x, y, z, w]
Quaternion = np.ndarray


# =============================================================================
# Skinning Type Aliases
# =============================================================================

# Single (joint_index, weight) influence
Weight = Tuple[int, float]

# All influences of one vertex
WeightSet = List[Weight]

# Influences of every vertex, in vertex order
WeightBinding = List[WeightSet]

# Joint short id -> bone index (position in the controller's joint list)
BoneIndexMap = Dict[str, int]


__all__ = [
    'Matrix4',
    'Vector3',
    'Vector4',
    'Quaternion',
    'Weight',
    'WeightSet',
    'WeightBinding',
    'BoneIndexMap',
]
