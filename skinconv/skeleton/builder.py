"""
Skeleton construction from scene document nodes.

Walks the joint-tagged nodes of a visual scene depth-first, threading the
parent's world matrix and world position through every call:

    world[joint]    = world[parent] @ local[joint]
    position[joint] = world[joint] @ (0, 0, 0, 1)
    offset[joint]   = position[joint] - position[parent]

Roots use the identity matrix and the origin as parent context. Assets without
joint nodes fall back to a flat skeleton built from the controller's inverse
bind matrices.
"""

from typing import Dict, List, Optional, Sequence
import logging
import numpy as np

from ..core.exceptions import (
    DuplicateJointError,
    JointNotFoundError,
    MultipleRootsError,
    ParseError,
)
from ..core.types import BoneIndexMap
from ..data.document import DocumentNode
from ..utils.matrix import (
    axis_angle_matrix,
    identity_matrix,
    invert,
    multiply,
    parse_matrix_values,
    scale_matrix,
    transform_point,
    translation_matrix,
)
from .joint import Joint, Skeleton

logger = logging.getLogger(__name__)


def bone_index_map_from_names(bone_names: Sequence[str]) -> BoneIndexMap:
    """
    Map controller joint names to their bone index.

    Raises:
        DuplicateJointError: If a name appears twice
    """
    mapping: BoneIndexMap = {}
    for index, name in enumerate(bone_names):
        if name in mapping:
            raise DuplicateJointError(f"Joint name '{name}' listed twice in the controller")
        mapping[name] = index
    return mapping


def parse_local_matrix(node: DocumentNode) -> np.ndarray:
    """
    Bind transform of a scene node relative to its parent.

    Uses the ``<matrix>`` child when present (row-major text). Otherwise the
    ``translate`` / ``rotate`` / ``scale`` children are composed in document
    order. Nodes without transform children get the identity.
    """
    matrix_node = node.find('matrix')
    if matrix_node is not None:
        return parse_matrix_values(matrix_node.float_values())

    local = identity_matrix()
    for child in node.children:
        if child.tag == 'translate':
            values = child.float_values()
            if len(values) != 3:
                raise ParseError(f"{child!r} of {node!r} needs 3 values, got {len(values)}")
            local = multiply(local, translation_matrix(*values))
        elif child.tag == 'rotate':
            values = child.float_values()
            if len(values) != 4:
                raise ParseError(f"{child!r} of {node!r} needs 4 values, got {len(values)}")
            local = multiply(local, axis_angle_matrix(values[:3], np.radians(values[3])))
        elif child.tag == 'scale':
            values = child.float_values()
            if len(values) != 3:
                raise ParseError(f"{child!r} of {node!r} needs 3 values, got {len(values)}")
            local = multiply(local, scale_matrix(*values))
    return local


def find_joint_roots(scene_root: DocumentNode) -> List[DocumentNode]:
    """
    Joint nodes reachable from scene_root through non-joint nodes only.

    A joint's own joint descendants are not roots.
    """
    if scene_root.is_joint:
        return [scene_root]

    roots = []

    def _collect(node: DocumentNode):
        for child in node.children:
            if child.tag != 'node':
                continue
            if child.is_joint:
                roots.append(child)
            else:
                _collect(child)

    _collect(scene_root)
    return roots


def build_joint(
    node: DocumentNode,
    parent_world_matrix: np.ndarray,
    parent_world_position: np.ndarray,
    bone_index_map: BoneIndexMap,
    seen: Dict[str, DocumentNode]
) -> Joint:
    """
    Build the joint subtree rooted at a joint node.

    Args:
        node: Joint-tagged scene node
        parent_world_matrix: Accumulated bind transform of the parent (4, 4)
        parent_world_position: Parent's bind position in model space (3,)
        bone_index_map: Joint short id -> bone index
        seen: Joint ids already built, shared across the whole tree

    Returns:
        Joint with all joint descendants attached

    Raises:
        ParseError: If the node has no id or the tree loops back on itself
        DuplicateJointError: If another node already uses this joint id
        JointNotFoundError: If the joint id has no bone index
    """
    joint_id = node.short_id
    if not joint_id:
        raise ParseError(f"Joint node {node!r} has neither 'sid' nor 'id'")

    if joint_id in seen:
        if seen[joint_id] is node:
            raise ParseError(f"Joint hierarchy contains a cycle at '{joint_id}'")
        raise DuplicateJointError(f"Joint id '{joint_id}' is used by more than one node")
    seen[joint_id] = node

    if joint_id not in bone_index_map:
        raise JointNotFoundError(f"Joint '{joint_id}' is not listed by the skin controller")
    index = bone_index_map[joint_id]

    local_matrix = parse_local_matrix(node)
    world_matrix = multiply(parent_world_matrix, local_matrix)
    world_position = transform_point(world_matrix)

    # Non-joint children (and their subtrees) are not part of the skeleton
    children = [
        build_joint(child, world_matrix, world_position, bone_index_map, seen)
        for child in node.children
        if child.is_joint
    ]

    return Joint(
        id=joint_id,
        index=index,
        local_matrix=local_matrix,
        world_matrix=world_matrix,
        parent_position=parent_world_position,
        children=children,
    )


def build_flat_skeleton(
    bone_names: Sequence[str],
    inverse_bind_matrices: np.ndarray
) -> Skeleton:
    """
    Flat skeleton from the controller's inverse bind matrices.

    Every bone becomes a root joint whose bind transform is the inverse of its
    inverse bind matrix. There are no parent/child relations.

    Raises:
        ParseError: If names and matrices disagree in count
        SingularMatrixError: If an inverse bind matrix cannot be inverted
    """
    inverse_bind_matrices = np.asarray(inverse_bind_matrices, dtype=np.float64)
    if len(bone_names) != len(inverse_bind_matrices):
        raise ParseError(
            f"{len(bone_names)} joint names but {len(inverse_bind_matrices)} inverse bind matrices"
        )
    bone_index_map_from_names(bone_names)

    joints = []
    for index, (name, inverse_bind) in enumerate(zip(bone_names, inverse_bind_matrices)):
        bind = invert(inverse_bind)
        joints.append(Joint(id=name, index=index, local_matrix=bind, world_matrix=bind))

    return Skeleton(joints, bone_names, is_flat=True)


def build_skeleton(
    scene_root: DocumentNode,
    bone_names: Sequence[str],
    inverse_bind_matrices: Optional[np.ndarray] = None
) -> Skeleton:
    """
    Build the bind skeleton of a rig.

    Args:
        scene_root: Visual scene (or any node) containing the rig
        bone_names: Controller joint names in bone index order
        inverse_bind_matrices: (J, 4, 4) controller inverse bind matrices,
            used only when the scene has no joint nodes

    Returns:
        Skeleton

    Raises:
        MultipleRootsError: If more than one top-level joint is found
        ParseError: If there are no joints and no inverse bind matrices
        JointNotFoundError: If a joint node has no bone index
    """
    bone_index_map = bone_index_map_from_names(bone_names)
    roots = find_joint_roots(scene_root)

    if len(roots) > 1:
        names = ', '.join(repr(node.short_id) for node in roots)
        raise MultipleRootsError(f"Expected one skeleton root, found {len(roots)}: {names}")

    if not roots:
        if inverse_bind_matrices is None:
            raise ParseError(f"{scene_root!r} has no joint nodes and no bind matrices to fall back to")
        logger.warning("No joint nodes in scene, building flat skeleton from bind matrices")
        return build_flat_skeleton(bone_names, inverse_bind_matrices)

    root = build_joint(roots[0], identity_matrix(), np.zeros(3), bone_index_map, {})
    skeleton = Skeleton([root], bone_names)
    logger.info(f"Built skeleton: {skeleton.num_joints} joints, {skeleton.num_bones} bones")
    return skeleton
