"""
Vertex weight binding.

Turns the skin controller's ``vcount`` / ``v`` arrays into a per-vertex list of
(joint_index, weight) influences, sorted by descending weight, truncated to the
strongest ``max_influences`` and rescaled to sum to one.
"""

from typing import List, Optional, Sequence, Tuple
import logging
import numpy as np

from ..core.constants import MAX_INFLUENCES, WEIGHT_SUM_TOLERANCE
from ..core.exceptions import ParseError
from ..core.types import WeightBinding, WeightSet

logger = logging.getLogger(__name__)


def normalize_influences(
    influences: Sequence[Tuple[int, float]],
    max_influences: int = MAX_INFLUENCES
) -> WeightSet:
    """
    Sort, truncate and rescale the influences of one vertex.

    Equal weights keep their input order. Weights are rescaled when influences
    were dropped or when their sum is off by more than WEIGHT_SUM_TOLERANCE.
    A set whose weights total zero is returned unscaled.

    Args:
        influences: (joint_index, weight) pairs in any order
        max_influences: Number of pairs to keep

    Returns:
        At most max_influences pairs, strongest first
    """
    if max_influences < 1:
        raise ValueError(f"max_influences must be positive, got {max_influences}")

    ordered = sorted(influences, key=lambda item: item[1], reverse=True)
    truncated = len(ordered) > max_influences
    ordered = ordered[:max_influences]

    total = sum(weight for _, weight in ordered)
    if total <= 0.0:
        return [(int(joint), float(weight)) for joint, weight in ordered]

    if truncated or abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
        return [(int(joint), float(weight) / total) for joint, weight in ordered]
    return [(int(joint), float(weight)) for joint, weight in ordered]


def bind_weights(
    vcount: Sequence[int],
    v: Sequence[int],
    weight_table: Sequence[float],
    joint_offset: int = 0,
    weight_offset: int = 1,
    stride: int = 2,
    max_influences: int = MAX_INFLUENCES,
    num_joints: Optional[int] = None
) -> WeightBinding:
    """
    Build the weight binding of every vertex.

    Vertex i consumes ``vcount[i]`` consecutive groups of ``stride`` integers
    from ``v``. Within a group, ``joint_offset`` selects the joint index and
    ``weight_offset`` the slot into ``weight_table``.

    Args:
        vcount: Influence count per vertex
        v: Interleaved joint index / weight slot groups
        weight_table: Weight values referenced by slot
        joint_offset: Position of the joint index inside a group
        weight_offset: Position of the weight slot inside a group
        stride: Integers per group
        max_influences: Influences kept per vertex
        num_joints: Bone count, enables joint index validation when given

    Returns:
        One WeightSet per vertex

    Raises:
        ParseError: If the arrays are inconsistent or a slot/index is out of range
    """
    for label, offset in (('joint', joint_offset), ('weight', weight_offset)):
        if not 0 <= offset < stride:
            raise ParseError(f"{label} offset {offset} outside index groups of stride {stride}")

    expected = sum(vcount) * stride
    if len(v) != expected:
        raise ParseError(
            f"Weight index array has {len(v)} entries, expected {expected} "
            f"({sum(vcount)} influences x stride {stride})"
        )

    binding: WeightBinding = []
    unweighted: List[int] = []
    cursor = 0

    for vertex, count in enumerate(vcount):
        if count < 0:
            raise ParseError(f"Vertex {vertex} has negative influence count {count}")

        influences = []
        for _ in range(count):
            joint_index = int(v[cursor + joint_offset])
            slot = int(v[cursor + weight_offset])
            cursor += stride

            if not 0 <= slot < len(weight_table):
                raise ParseError(
                    f"Vertex {vertex} references weight slot {slot}, table has {len(weight_table)}"
                )
            if num_joints is not None and not 0 <= joint_index < num_joints:
                raise ParseError(
                    f"Vertex {vertex} references joint {joint_index}, skeleton has {num_joints}"
                )
            influences.append((joint_index, float(weight_table[slot])))

        weight_set = normalize_influences(influences, max_influences)
        if weight_set and sum(weight for _, weight in weight_set) <= 0.0:
            unweighted.append(vertex)
        binding.append(weight_set)

    if unweighted:
        logger.warning(
            f"{len(unweighted)} vertices have influences with zero total weight "
            f"(first: {unweighted[0]}), left unnormalized"
        )

    return binding


def pad_weight_binding(
    binding: WeightBinding,
    max_influences: int = MAX_INFLUENCES
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Dense arrays of a weight binding, padded with index 0 / weight 0.

    Returns:
        indices: (V, max_influences) int64
        weights: (V, max_influences) float64
    """
    indices = np.zeros((len(binding), max_influences), dtype=np.int64)
    weights = np.zeros((len(binding), max_influences), dtype=np.float64)
    for vertex, weight_set in enumerate(binding):
        for slot, (joint_index, weight) in enumerate(weight_set[:max_influences]):
            indices[vertex, slot] = joint_index
            weights[vertex, slot] = weight
    return indices, weights
