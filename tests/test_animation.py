"""
Tests for animation channel matching and track loading.
"""

import pytest
import numpy as np

from skinconv.core.exceptions import (
    JointNotFoundError,
    MalformedAnimationError,
    UnsupportedMultiAnimationError,
)
from skinconv.skeleton.animation import (
    AnimationChannel,
    AnimationTrack,
    frame_at_time,
    load_tracks,
    match_joint,
)
from skinconv.skeleton.builder import build_skeleton
from skinconv.utils.matrix import translation_matrix


def matrix_values(*matrices):
    """Flat row-major values of several matrices."""
    return np.concatenate([np.asarray(m, dtype=float).ravel() for m in matrices])


@pytest.fixture
def arm_skeleton(make_joint_node):
    """Skeleton with joints 'arm' and 'lowerarm'."""
    root = make_joint_node('arm', (0, 1, 0), [make_joint_node('lowerarm', (0, 1, 0))])
    return build_skeleton(root, ['arm', 'lowerarm'])


# =============================================================================
# Matching Tests
# =============================================================================

class TestMatchJoint:
    """Tests for channel to joint resolution."""

    def test_longest_match_wins(self):
        """'char_lowerarm_matrix' binds to 'lowerarm', not 'arm'."""
        assert match_joint('char_lowerarm_matrix', {'arm', 'lowerarm'}) == 'lowerarm'

    def test_short_name_still_matches(self):
        """A channel naming only the short joint binds to it."""
        assert match_joint('char_arm_matrix', ['lowerarm', 'arm']) == 'arm'

    def test_equal_length_prefers_later_match(self):
        """The armature prefix does not capture a same-length joint name."""
        assert match_joint('Armature_leg_pose_matrix', ['arm', 'leg']) == 'leg'
        assert match_joint('Armature_leg_pose_matrix', ['leg', 'arm']) == 'leg'

    def test_longer_match_beats_later_match(self):
        """Length is compared before position."""
        assert match_joint('spine_hip', ['hip', 'spine']) == 'spine'

    def test_no_match_raises(self):
        """A channel that names no joint is rejected."""
        with pytest.raises(JointNotFoundError):
            match_joint('char_leg_matrix', ['arm', 'lowerarm'])


# =============================================================================
# Track Tests
# =============================================================================

class TestAnimationTrack:
    """Tests for track construction invariants."""

    def test_length_mismatch_raises(self):
        """timeArray and transforms must have equal length."""
        with pytest.raises(MalformedAnimationError):
            AnimationTrack('arm', 0, 'c', [0.0, 1.0, 2.0], np.stack([np.eye(4)] * 2))

    def test_non_increasing_times_raise(self):
        """Sample times must strictly increase."""
        with pytest.raises(MalformedAnimationError):
            AnimationTrack('arm', 0, 'c', [0.0, 0.0], np.stack([np.eye(4)] * 2))

    def test_empty_track_raises(self):
        """A track needs at least one sample."""
        with pytest.raises(MalformedAnimationError):
            AnimationTrack('arm', 0, 'c', [], np.zeros((0, 4, 4)))

    def test_bad_shape_raises(self):
        """Transforms must be 4x4 matrices."""
        with pytest.raises(MalformedAnimationError):
            AnimationTrack('arm', 0, 'c', [0.0], np.zeros((1, 3, 3)))

    def test_properties(self):
        """Timing helpers reflect the samples."""
        track = AnimationTrack('arm', 0, 'c', [0.5, 1.0, 2.0], np.stack([np.eye(4)] * 3))
        assert track.num_frames == 3
        assert len(track) == 3
        assert track.start_time == 0.5
        assert track.duration == pytest.approx(1.5)

    def test_arrays_are_read_only(self):
        """Loaded tracks cannot be modified in place."""
        track = AnimationTrack('arm', 0, 'c', [0.0], np.stack([np.eye(4)]))
        with pytest.raises(ValueError):
            track.transforms[0, 0, 0] = 2.0


class TestFrameAtTime:
    """Tests for sample lookup by time."""

    @pytest.mark.parametrize('t,expected', [
        (-1.0, 0),
        (0.0, 0),
        (0.4, 0),
        (0.5, 1),
        (0.99, 1),
        (1.0, 2),
        (10.0, 2),
    ])
    def test_last_sample_at_or_before(self, t, expected):
        """Times snap to the preceding sample and clamp at the ends."""
        track = AnimationTrack('arm', 0, 'c', [0.0, 0.5, 1.0], np.stack([np.eye(4)] * 3))
        assert frame_at_time(track, t) == expected


# =============================================================================
# Loader Tests
# =============================================================================

class TestLoadTracks:
    """Tests for resolving channels against a skeleton."""

    def test_binds_longest_joint(self, arm_skeleton):
        """The lowerarm channel lands on the lowerarm bone."""
        channel = AnimationChannel(
            'char_lowerarm_matrix',
            np.array([0.0, 1.0]),
            matrix_values(translation_matrix(0, 1, 0), translation_matrix(0, 2, 0)),
        )
        tracks = load_tracks([channel], arm_skeleton)
        assert len(tracks) == 1
        assert tracks[0].joint_id == 'lowerarm'
        assert tracks[0].joint_index == 1
        assert np.allclose(tracks[0].transforms[1], translation_matrix(0, 2, 0))

    def test_multiple_clips_raise(self, arm_skeleton):
        """Only one animation clip is supported."""
        with pytest.raises(UnsupportedMultiAnimationError):
            load_tracks([], arm_skeleton, clip_count=2)

    def test_partial_matrix_output_raises(self, arm_skeleton):
        """Output values must be whole matrices."""
        channel = AnimationChannel('arm_x', np.array([0.0]), np.zeros(12))
        with pytest.raises(MalformedAnimationError):
            load_tracks([channel], arm_skeleton)

    def test_count_mismatch_raises(self, arm_skeleton):
        """Sample times and matrices must pair up."""
        channel = AnimationChannel('arm_x', np.array([0.0, 1.0]), matrix_values(np.eye(4)))
        with pytest.raises(MalformedAnimationError):
            load_tracks([channel], arm_skeleton)

    def test_two_channels_for_one_joint_raise(self, arm_skeleton):
        """A joint is animated by at most one channel."""
        values = matrix_values(np.eye(4))
        channels = [
            AnimationChannel('arm_location', np.array([0.0]), values),
            AnimationChannel('arm_rotation', np.array([0.0]), values),
        ]
        with pytest.raises(MalformedAnimationError):
            load_tracks(channels, arm_skeleton)

    def test_unknown_joint_raises(self, arm_skeleton):
        """Channels must name a joint."""
        channel = AnimationChannel('leg', np.array([0.0]), matrix_values(np.eye(4)))
        with pytest.raises(JointNotFoundError):
            load_tracks([channel], arm_skeleton)

    def test_rig_tracks(self, rig_tracks):
        """The inline rig animates 'mid' with two samples."""
        assert len(rig_tracks) == 1
        track = rig_tracks[0]
        assert track.joint_id == 'mid'
        assert track.joint_index == 1
        assert track.channel_id == 'Armature_mid_pose_matrix'
        assert np.allclose(track.time_array, [0.0, 1.0])
        assert np.allclose(track.transforms[0], translation_matrix(0, 5, 0))
