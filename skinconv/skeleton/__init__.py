"""
Skeleton module for skinconv.

Contains:
- Joint, Skeleton: Immutable bind-pose joint tree
- Builder: Skeleton construction from scene nodes
- Weights: Vertex weight binding
- Animation: Channel to joint matching and keyframed tracks
- Pose: Per-frame pose evaluation and validation
- Skinning: Linear blend skinning with torch
"""

from .joint import Joint, Skeleton, bone_rotation
from .builder import (
    bone_index_map_from_names,
    parse_local_matrix,
    find_joint_roots,
    build_joint,
    build_flat_skeleton,
    build_skeleton,
)
from .weights import normalize_influences, bind_weights, pad_weight_binding
from .animation import (
    AnimationChannel,
    AnimationTrack,
    frame_at_time,
    match_joint,
    load_tracks,
)
from .pose import (
    Pose,
    PoseValidation,
    index_tracks,
    evaluate_joint,
    evaluate_pose,
    evaluate_pose_at_time,
    bind_pose,
    validate_pose,
)
from .skinning import LinearBlendSkinning

__all__ = [
    # Joint tree
    'Joint',
    'Skeleton',
    'bone_rotation',
    # Builder
    'bone_index_map_from_names',
    'parse_local_matrix',
    'find_joint_roots',
    'build_joint',
    'build_flat_skeleton',
    'build_skeleton',
    # Weights
    'normalize_influences',
    'bind_weights',
    'pad_weight_binding',
    # Animation
    'AnimationChannel',
    'AnimationTrack',
    'frame_at_time',
    'match_joint',
    'load_tracks',
    # Pose
    'Pose',
    'PoseValidation',
    'index_tracks',
    'evaluate_joint',
    'evaluate_pose',
    'evaluate_pose_at_time',
    'bind_pose',
    'validate_pose',
    # Skinning
    'LinearBlendSkinning',
]
