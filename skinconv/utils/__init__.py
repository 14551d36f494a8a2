"""
Utility functions for skinconv.

Includes matrix and quaternion operations, visualization helpers, and
configuration management.
"""

from .matrix import (
    identity_matrix,
    transpose,
    multiply,
    invert,
    compose_delta,
    transform_point,
    translation_matrix,
    scale_matrix,
    axis_angle_matrix,
    parse_matrix_values,
    matrices_from_values,
    to_column_major,
    from_column_major,
)
from .quaternion import (
    identity_quaternion,
    normalize_quaternion,
    quaternion_conjugate,
    quaternion_multiply,
    quaternion_from_axis_angle,
    quaternion_to_matrix,
    quaternion_from_matrix_rotation,
    quaternion_from_rotation_between,
    rotate_vector,
)
from .visualization import PlotStyle, plot_skeleton, plot_pose_sequence
from .config import ConvertConfig, load_config, save_config

__all__ = [
    # Matrix operations
    "identity_matrix",
    "transpose",
    "multiply",
    "invert",
    "compose_delta",
    "transform_point",
    "translation_matrix",
    "scale_matrix",
    "axis_angle_matrix",
    "parse_matrix_values",
    "matrices_from_values",
    "to_column_major",
    "from_column_major",
    # Quaternion operations
    "identity_quaternion",
    "normalize_quaternion",
    "quaternion_conjugate",
    "quaternion_multiply",
    "quaternion_from_axis_angle",
    "quaternion_to_matrix",
    "quaternion_from_matrix_rotation",
    "quaternion_from_rotation_between",
    "rotate_vector",
    # Visualization
    "PlotStyle",
    "plot_skeleton",
    "plot_pose_sequence",
    # Config
    "ConvertConfig",
    "load_config",
    "save_config",
]
