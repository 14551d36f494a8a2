"""
Animation track loading.

Channels name their target joint only as a substring of the channel id (for
example ``char_lowerarm_matrix``), so every channel is matched against the
skeleton's joint ids longest first. Only matrix-valued channels of a single
clip are supported.
"""

from typing import Iterable, List, NamedTuple, Sequence
import logging
import numpy as np

from ..core.constants import MATRIX_SIZE
from ..core.exceptions import (
    JointNotFoundError,
    MalformedAnimationError,
    UnsupportedMultiAnimationError,
)
from .joint import Skeleton

logger = logging.getLogger(__name__)


class AnimationChannel(NamedTuple):
    """Raw sampler data of one animation channel."""
    channel_id: str     # Channel (or animation) id carrying the joint name
    times: np.ndarray   # (T,) sample times
    values: np.ndarray  # (T * 16,) row-major matrices, flat


class AnimationTrack:
    """
    Keyframed local transforms of one joint.

    ``transforms[i]`` is the joint's local matrix at ``time_array[i]``. Sample
    times are strictly increasing. Arrays are read-only.
    """

    def __init__(
        self,
        joint_id: str,
        joint_index: int,
        channel_id: str,
        time_array: np.ndarray,
        transforms: np.ndarray
    ):
        """
        Args:
            joint_id: Id of the animated joint
            joint_index: Bone index of the animated joint
            channel_id: Id of the source channel
            time_array: (T,) sample times
            transforms: (T, 4, 4) local matrices

        Raises:
            MalformedAnimationError: On length mismatch, bad shape, no samples
                or non-increasing times
        """
        time_array = np.array(time_array, dtype=np.float64).reshape(-1)
        transforms = np.array(transforms, dtype=np.float64)

        if transforms.ndim != 3 or transforms.shape[1:] != (4, 4):
            raise MalformedAnimationError(
                f"Track '{channel_id}': transforms must have shape (T, 4, 4), got {transforms.shape}"
            )
        if len(time_array) != len(transforms):
            raise MalformedAnimationError(
                f"Track '{channel_id}': {len(time_array)} sample times but {len(transforms)} transforms"
            )
        if len(time_array) == 0:
            raise MalformedAnimationError(f"Track '{channel_id}' has no samples")
        if np.any(np.diff(time_array) <= 0):
            raise MalformedAnimationError(f"Track '{channel_id}': sample times are not strictly increasing")

        time_array.setflags(write=False)
        transforms.setflags(write=False)

        self.joint_id = joint_id
        self.joint_index = joint_index
        self.channel_id = channel_id
        self.time_array = time_array
        self.transforms = transforms

    def __repr__(self) -> str:
        return f"AnimationTrack(joint={self.joint_id!r}, frames={self.num_frames})"

    def __len__(self) -> int:
        return self.num_frames

    @property
    def num_frames(self) -> int:
        return len(self.time_array)

    @property
    def start_time(self) -> float:
        return float(self.time_array[0])

    @property
    def end_time(self) -> float:
        return float(self.time_array[-1])

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


def frame_at_time(track: AnimationTrack, t: float) -> int:
    """
    Index of the last sample at or before t.

    Times before the first sample map to frame 0, times after the last sample
    map to the last frame.
    """
    index = int(np.searchsorted(track.time_array, t, side='right')) - 1
    return min(max(index, 0), track.num_frames - 1)


def match_joint(channel_id: str, joint_ids: Iterable[str]) -> str:
    """
    Joint a channel animates: the longest joint id contained in channel_id.

    Among matches of equal length the one occurring last in channel_id wins
    (``Armature_leg_pose_matrix`` binds to ``leg``, not ``arm``), so the result
    does not depend on the iteration order of joint_ids.

    Raises:
        JointNotFoundError: If no joint id is a substring of channel_id
    """
    matches = [joint_id for joint_id in joint_ids if joint_id and joint_id in channel_id]
    if matches:
        return min(matches, key=lambda name: (-len(name), -channel_id.rfind(name)))
    raise JointNotFoundError(f"No joint matches animation channel '{channel_id}'")


def load_tracks(
    channels: Sequence[AnimationChannel],
    skeleton: Skeleton,
    clip_count: int = 1
) -> List[AnimationTrack]:
    """
    Resolve channels to joints and build their tracks.

    Args:
        channels: Raw channels in document order
        skeleton: Bind skeleton providing the joint ids
        clip_count: Number of animation clips in the document

    Returns:
        One track per channel, in channel order

    Raises:
        UnsupportedMultiAnimationError: If the document has several clips
        JointNotFoundError: If a channel matches no joint
        MalformedAnimationError: On inconsistent sampler data or two channels
            for the same joint
    """
    if clip_count > 1:
        raise UnsupportedMultiAnimationError(
            f"Document has {clip_count} animation clips, only one is supported"
        )

    joint_ids = skeleton.joint_ids
    tracks = []
    claimed = {}

    for channel in channels:
        joint_id = match_joint(channel.channel_id, joint_ids)
        if joint_id in claimed:
            raise MalformedAnimationError(
                f"Channels '{claimed[joint_id]}' and '{channel.channel_id}' both animate joint '{joint_id}'"
            )
        claimed[joint_id] = channel.channel_id

        values = np.asarray(channel.values, dtype=np.float64).reshape(-1)
        if len(values) % MATRIX_SIZE != 0:
            raise MalformedAnimationError(
                f"Channel '{channel.channel_id}': {len(values)} output values is not a whole number of matrices"
            )

        joint = skeleton.get_joint(joint_id)
        tracks.append(AnimationTrack(
            joint_id=joint_id,
            joint_index=joint.index,
            channel_id=channel.channel_id,
            time_array=channel.times,
            transforms=values.reshape(-1, 4, 4),
        ))

    logger.info(f"Loaded {len(tracks)} animation tracks")
    return tracks
