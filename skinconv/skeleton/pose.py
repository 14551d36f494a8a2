"""
Pose evaluation.

A pose is recomputed from scratch for every sampled frame by walking the bind
skeleton with the animation tracks. Each joint carries two derivations:

- position from the matrix chain: world = parent_world @ local
- orientation from the quaternion chain: q = parent_q * rotation(anim @ bind^-1)

The two agree for rigid rigs; ``validate_pose`` checks that on demand.
"""

from typing import Dict, Iterator, Mapping, NamedTuple, Sequence, Tuple
import numpy as np

from ..core.constants import DEFAULT_POSE_TOLERANCE
from ..core.exceptions import MalformedAnimationError
from ..utils.matrix import compose_delta, identity_matrix, multiply, transform_point
from ..utils.quaternion import (
    identity_quaternion,
    quaternion_from_matrix_rotation,
    quaternion_multiply,
    rotate_vector,
)
from .animation import AnimationTrack, frame_at_time
from .joint import Joint, Skeleton


class Pose(NamedTuple):
    """World-space joint state of one frame, indexed by bone index."""
    positions: np.ndarray     # (num_bones, 3)
    orientations: np.ndarray  # (num_bones, 4) as [x, y, z, w]


class PoseValidation(NamedTuple):
    """Disagreement between matrix-chain and quaternion-chain positions."""
    max_error: float
    errors: np.ndarray  # (num_bones,)
    ok: bool


def index_tracks(tracks: Sequence[AnimationTrack]) -> Dict[int, AnimationTrack]:
    """
    Map bone index -> track.

    Raises:
        MalformedAnimationError: If two tracks target the same bone
    """
    by_index: Dict[int, AnimationTrack] = {}
    for track in tracks:
        if track.joint_index in by_index:
            raise MalformedAnimationError(f"Bone {track.joint_index} has more than one track")
        by_index[track.joint_index] = track
    return by_index


def evaluate_joint(
    joint: Joint,
    parent_world_matrix: np.ndarray,
    parent_quat: np.ndarray,
    tracks: Mapping[int, AnimationTrack],
    frames: Mapping[int, int]
) -> Iterator[Tuple[int, np.ndarray, np.ndarray]]:
    """
    Evaluate a joint subtree.

    The parent world position is not passed down: it is the translation of
    parent_world_matrix, so each position is read off the composed matrix.

    Args:
        joint: Subtree root
        parent_world_matrix: Animated world transform of the parent
        parent_quat: Accumulated orientation of the parent
        tracks: Bone index -> track
        frames: Bone index -> sample index for every tracked bone

    Yields:
        (bone_index, world_position, accumulated_quat), depth-first
    """
    track = tracks.get(joint.index)
    if track is not None:
        local_matrix = track.transforms[frames[joint.index]]
        delta_quat = quaternion_from_matrix_rotation(compose_delta(local_matrix, joint.local_matrix))
    else:
        local_matrix = joint.local_matrix
        delta_quat = identity_quaternion()

    world_matrix = multiply(parent_world_matrix, local_matrix)
    accumulated_quat = quaternion_multiply(parent_quat, delta_quat)
    world_position = transform_point(world_matrix)

    yield joint.index, world_position, accumulated_quat

    for child in joint.children:
        yield from evaluate_joint(child, world_matrix, accumulated_quat, tracks, frames)


def _evaluate(
    skeleton: Skeleton,
    tracks: Mapping[int, AnimationTrack],
    frames: Mapping[int, int]
) -> Pose:
    positions = np.zeros((skeleton.num_bones, 3), dtype=np.float64)
    orientations = np.tile(identity_quaternion(), (skeleton.num_bones, 1))

    for root in skeleton.roots:
        for index, position, quat in evaluate_joint(
            root, identity_matrix(), identity_quaternion(), tracks, frames
        ):
            positions[index] = position
            orientations[index] = quat

    return Pose(positions, orientations)


def evaluate_pose(
    skeleton: Skeleton,
    tracks: Sequence[AnimationTrack] = (),
    frame: int = 0
) -> Pose:
    """
    Pose of the skeleton at one sample index.

    Args:
        skeleton: Bind skeleton
        tracks: Animation tracks (joints without a track keep their bind transform)
        frame: Sample index, applied to every track

    Returns:
        Freshly allocated Pose

    Raises:
        ValueError: If frame is outside the range of any track
    """
    by_index = index_tracks(tracks)
    for track in by_index.values():
        if not 0 <= frame < track.num_frames:
            raise ValueError(
                f"Frame {frame} out of range for track '{track.channel_id}' ({track.num_frames} frames)"
            )
    frames = {index: frame for index in by_index}
    return _evaluate(skeleton, by_index, frames)


def evaluate_pose_at_time(
    skeleton: Skeleton,
    tracks: Sequence[AnimationTrack],
    t: float
) -> Pose:
    """Pose at time t, each track using its last sample at or before t."""
    by_index = index_tracks(tracks)
    frames = {index: frame_at_time(track, t) for index, track in by_index.items()}
    return _evaluate(skeleton, by_index, frames)


def bind_pose(skeleton: Skeleton) -> Pose:
    """Pose without animation: bind positions and identity orientations."""
    return _evaluate(skeleton, {}, {})


def validate_pose(
    skeleton: Skeleton,
    tracks: Sequence[AnimationTrack] = (),
    frame: int = 0,
    atol: float = DEFAULT_POSE_TOLERANCE
) -> PoseValidation:
    """
    Cross-check a pose's positions against its orientation chain.

    Each child's position is predicted as
    ``parent_position + rotate(offset, parent_orientation)`` from the
    evaluated parent state and compared with the matrix-chain position.
    Roots are not predicted and report zero error. The check is exact for
    rigid rigs whose bind pose carries no rotation.

    Returns:
        PoseValidation report
    """
    pose = evaluate_pose(skeleton, tracks, frame)
    errors = np.zeros(skeleton.num_bones, dtype=np.float64)

    for joint in skeleton.walk():
        parent_position = pose.positions[joint.index]
        parent_quat = pose.orientations[joint.index]
        for child in joint.children:
            predicted = parent_position + rotate_vector(child.offset, parent_quat)
            errors[child.index] = np.linalg.norm(predicted - pose.positions[child.index])

    max_error = float(errors.max()) if len(errors) else 0.0
    return PoseValidation(max_error=max_error, errors=errors, ok=max_error <= atol)
