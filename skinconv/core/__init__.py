"""
Core module for skinconv.

Contains:
- Constants: Centralized default values and numeric tolerances
- Types: Type aliases for matrices, quaternions and weight bindings
- Exceptions: The conversion error taxonomy
"""

from .constants import (
    # Numeric constants
    DEFAULT_EPS,
    DEFAULT_EPS_NORM,
    SINGULAR_EPS,
    ANTIPARALLEL_EPS,
    WEIGHT_SUM_TOLERANCE,
    DEFAULT_POSE_TOLERANCE,
    # Skinning defaults
    MAX_INFLUENCES,
    BONE_AXIS,
    # Format constants
    FORMAT_VERSION,
    COLLADA_NAMESPACE,
    JOINT_NODE_TYPE,
    MATRIX_SIZE,
)

from .types import (
    Matrix4,
    Vector3,
    Vector4,
    Quaternion,
    Weight,
    WeightSet,
    WeightBinding,
    BoneIndexMap,
)

from .exceptions import (
    SkinConvError,
    ParseError,
    DuplicateJointError,
    SingularMatrixError,
    JointNotFoundError,
    MalformedAnimationError,
    UnsupportedMultiAnimationError,
    MultipleRootsError,
)

__all__ = [
    # Constants
    "DEFAULT_EPS",
    "DEFAULT_EPS_NORM",
    "SINGULAR_EPS",
    "ANTIPARALLEL_EPS",
    "WEIGHT_SUM_TOLERANCE",
    "DEFAULT_POSE_TOLERANCE",
    "MAX_INFLUENCES",
    "BONE_AXIS",
    "FORMAT_VERSION",
    "COLLADA_NAMESPACE",
    "JOINT_NODE_TYPE",
    "MATRIX_SIZE",
    # Types
    "Matrix4",
    "Vector3",
    "Vector4",
    "Quaternion",
    "Weight",
    "WeightSet",
    "WeightBinding",
    "BoneIndexMap",
    # Exceptions
    "SkinConvError",
    "ParseError",
    "DuplicateJointError",
    "SingularMatrixError",
    "JointNotFoundError",
    "MalformedAnimationError",
    "UnsupportedMultiAnimationError",
    "MultipleRootsError",
]
