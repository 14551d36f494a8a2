"""
Tests for vertex weight binding.
"""

import pytest
import numpy as np

from skinconv.core.exceptions import ParseError
from skinconv.skeleton.weights import bind_weights, normalize_influences, pad_weight_binding


class TestNormalizeInfluences:
    """Tests for per-vertex sorting, truncation and rescaling."""

    def test_sorted_descending(self):
        """Influences come back strongest first."""
        result = normalize_influences([(0, 0.2), (1, 0.5), (2, 0.3)])
        assert [joint for joint, _ in result] == [1, 2, 0]

    def test_four_or_fewer_unchanged(self):
        """Without truncation the weights keep their values."""
        influences = [(3, 0.1), (1, 0.4), (2, 0.3), (0, 0.2)]
        result = normalize_influences(influences)
        assert sorted(result) == sorted(influences)

    def test_truncates_to_four_and_rescales(self):
        """Only the four strongest survive and they sum to one."""
        influences = [(0, 0.3), (1, 0.25), (2, 0.2), (3, 0.15), (4, 0.1)]
        result = normalize_influences(influences)
        assert len(result) == 4
        assert [joint for joint, _ in result] == [0, 1, 2, 3]
        assert abs(sum(weight for _, weight in result) - 1.0) < 1e-6
        assert result[0][1] == pytest.approx(0.3 / 0.9)

    def test_rescales_unnormalized_sum(self):
        """Sets off by more than the tolerance are rescaled even when nothing is dropped."""
        result = normalize_influences([(0, 2.0), (1, 2.0)])
        assert [weight for _, weight in result] == pytest.approx([0.5, 0.5])

    def test_equal_weights_keep_input_order(self):
        """The sort is stable."""
        result = normalize_influences([(5, 0.25), (2, 0.25), (7, 0.25), (1, 0.25)])
        assert [joint for joint, _ in result] == [5, 2, 7, 1]

    def test_custom_limit(self):
        """max_influences controls the truncation."""
        result = normalize_influences([(0, 0.5), (1, 0.3), (2, 0.2)], max_influences=2)
        assert len(result) == 2
        assert sum(weight for _, weight in result) == pytest.approx(1.0)

    def test_zero_total_left_unscaled(self):
        """All-zero weights are not divided by zero."""
        result = normalize_influences([(0, 0.0), (1, 0.0)])
        assert [weight for _, weight in result] == [0.0, 0.0]

    def test_empty(self):
        """Vertices without influences stay empty."""
        assert normalize_influences([]) == []


class TestBindWeights:
    """Tests for decoding COLLADA vcount / v arrays."""

    def test_decodes_interleaved_pairs(self):
        """Each vertex consumes vcount[i] (joint, slot) pairs."""
        binding = bind_weights(
            vcount=[1, 2],
            v=[0, 0, 1, 1, 2, 2],
            weight_table=[1.0, 0.25, 0.75],
        )
        assert binding[0] == [(0, 1.0)]
        assert binding[1] == [(2, 0.75), (1, 0.25)]

    def test_every_vertex_normalized(self):
        """Weight sums are one and at most four influences remain."""
        rng = np.random.default_rng(0)
        vcount = [1, 3, 6, 4, 8]
        v = []
        table = []
        for count in vcount:
            for k in range(count):
                v.extend([k, len(table)])
                table.append(float(rng.uniform(0.05, 1.0)))

        binding = bind_weights(vcount, v, table)
        for weight_set in binding:
            assert len(weight_set) <= 4
            assert abs(sum(weight for _, weight in weight_set) - 1.0) < 1e-6
            weights = [weight for _, weight in weight_set]
            assert weights == sorted(weights, reverse=True)

    def test_custom_offsets_and_stride(self):
        """Weight slot first, joint second, with an extra input."""
        binding = bind_weights(
            vcount=[1],
            v=[0, 4, 9],
            weight_table=[1.0],
            joint_offset=1,
            weight_offset=0,
            stride=3,
        )
        assert binding == [[(4, 1.0)]]

    def test_length_mismatch_raises(self):
        """len(v) must equal sum(vcount) * stride."""
        with pytest.raises(ParseError):
            bind_weights([2], [0, 0, 1], [1.0])

    def test_bad_weight_slot_raises(self):
        """Slots must index the weight table."""
        with pytest.raises(ParseError):
            bind_weights([1], [0, 5], [1.0])

    def test_bad_joint_index_raises(self):
        """Joint indices are checked when the bone count is known."""
        with pytest.raises(ParseError):
            bind_weights([1], [3, 0], [1.0], num_joints=3)

    def test_zero_weight_vertex_logs_warning(self, caplog):
        """Unweighted vertices are reported."""
        binding = bind_weights([1], [0, 0], [0.0])
        assert binding == [[(0, 0.0)]]
        assert 'zero total weight' in caplog.text

    def test_rig_weights(self, rig_asset):
        """The inline rig decodes to the expected binding."""
        skin = rig_asset.skin
        binding = bind_weights(
            skin.vcount, skin.v, skin.weight_table,
            skin.joint_offset, skin.weight_offset, skin.stride,
        )
        assert binding == [
            [(0, 1.0)],
            [(0, 1.0)],
            [(1, 0.5), (2, 0.5)],
            [(2, 0.75), (1, 0.25)],
        ]


class TestPadWeightBinding:
    """Tests for dense weight arrays."""

    def test_padding(self):
        """Missing slots are zero index / zero weight."""
        indices, weights = pad_weight_binding([[(2, 1.0)], [(1, 0.6), (3, 0.4)]])
        assert indices.shape == (2, 4)
        assert indices.tolist() == [[2, 0, 0, 0], [1, 3, 0, 0]]
        assert np.allclose(weights, [[1.0, 0, 0, 0], [0.6, 0.4, 0, 0]])


class TestBindWeightsOffsets:
    """Tests for group offset validation."""

    def test_negative_joint_offset_raises(self):
        """Offsets must index into a group."""
        with pytest.raises(ParseError):
            bind_weights([1], [0, 0], [1.0], joint_offset=-1)

    def test_offset_past_stride_raises(self):
        """Offsets must be smaller than the stride."""
        with pytest.raises(ParseError):
            bind_weights([1], [0, 0], [1.0], weight_offset=2, stride=2)
