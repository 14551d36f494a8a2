"""
Centralized constants for skinconv.

This module defines the default values and numeric tolerances shared by the
skeleton pipeline and the converters.

Usage:
    from skinconv.core.constants import MAX_INFLUENCES, SINGULAR_EPS
"""

# =============================================================================
# Numeric Constants
# =============================================================================

# Small epsilon for division stability (general use)
DEFAULT_EPS: float = 1e-8

# Epsilon for normalization operations
DEFAULT_EPS_NORM: float = 1e-12

# Determinant magnitude below which a 4x4 transform is treated as singular
SINGULAR_EPS: float = 1e-12

# 1 + dot(v1, v2) below this value means v1 and v2 point in opposite directions
ANTIPARALLEL_EPS: float = 1e-6

# Allowed deviation of a vertex's weight sum from 1.0 before it is rescaled
WEIGHT_SUM_TOLERANCE: float = 1e-6

# Default tolerance of the pose validation pass (model units)
DEFAULT_POSE_TOLERANCE: float = 1e-4


# =============================================================================
# Skinning Defaults
# =============================================================================

# Maximum joint influences kept per vertex
MAX_INFLUENCES: int = 4

# Rest direction of a bone, rotated onto the joint offset to get Joint.rotation
BONE_AXIS: tuple = (1.0, 0.0, 0.0)


# =============================================================================
# Format Constants
# =============================================================================

# Version written into every JSON snapshot
FORMAT_VERSION: int = 1

# COLLADA 1.4 schema namespace
COLLADA_NAMESPACE: str = 'http://www.collada.org/2005/11/COLLADASchema'

# Node type attribute value that marks a joint
JOINT_NODE_TYPE: str = 'JOINT'

# Values per flattened 4x4 matrix
MATRIX_SIZE: int = 16
