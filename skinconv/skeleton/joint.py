"""
Skeleton containers.

A Joint stores its bind-pose transforms and the derived bone geometry
(offset from the parent, length, and the rotation taking the rest bone axis
onto the offset). A Skeleton owns the joint tree together with the bone list
of the skin controller.

Both are built once per asset and never mutated afterwards; the numpy arrays
they hold are flagged read-only.
"""

from typing import Dict, Iterator, List, Optional, Sequence, Tuple
import numpy as np

from ..core.constants import BONE_AXIS, DEFAULT_EPS
from ..utils.matrix import transform_point
from ..utils.quaternion import identity_quaternion, quaternion_from_rotation_between


def _frozen(array) -> np.ndarray:
    array = np.array(array, dtype=np.float64)
    array.setflags(write=False)
    return array


def bone_rotation(offset: np.ndarray) -> np.ndarray:
    """Rotation taking the rest bone axis onto the direction of offset."""
    if np.linalg.norm(offset) < DEFAULT_EPS:
        return identity_quaternion()
    return quaternion_from_rotation_between(BONE_AXIS, offset)


class Joint:
    """
    Single joint in a skeleton.

    Stores the bind pose relative to the parent (local_matrix) and in model
    space (world_matrix, world_position).
    """

    def __init__(
        self,
        id: str,
        index: int,
        local_matrix: np.ndarray,
        world_matrix: np.ndarray,
        parent_position: Optional[np.ndarray] = None,
        children: Sequence['Joint'] = ()
    ):
        """
        Args:
            id: Scoped joint name, unique within the skeleton
            index: Bone index in the skin controller's joint list
            local_matrix: Bind transform relative to the parent (4, 4)
            world_matrix: Bind transform in model space (4, 4)
            parent_position: Parent's world position (origin for roots)
            children: Child joints
        """
        self.id = id
        self.index = index
        self.local_matrix = _frozen(local_matrix)
        self.world_matrix = _frozen(world_matrix)
        self.world_position = _frozen(transform_point(self.world_matrix))

        if parent_position is None:
            parent_position = np.zeros(3)
        self.offset = _frozen(self.world_position - np.asarray(parent_position, dtype=np.float64))
        self.joint_length = float(np.linalg.norm(self.offset))
        self.rotation = _frozen(bone_rotation(self.offset))

        self.children: Tuple['Joint', ...] = tuple(children)

    def __repr__(self) -> str:
        return f"Joint(id={self.id!r}, index={self.index}, children={len(self.children)})"

    @property
    def num_children(self) -> int:
        return len(self.children)

    @property
    def is_leaf(self) -> bool:
        return len(self.children) == 0

    def walk(self) -> Iterator['Joint']:
        """Depth-first iteration over this joint and its descendants."""
        yield self
        for child in self.children:
            yield from child.walk()


class Skeleton:
    """
    Joint tree plus the bone list it indexes into.

    ``bone_names[i]`` is the controller joint name of bone index i. Every joint
    in the tree maps to one bone index; bones without a scene node keep a zero
    bind position.
    """

    def __init__(
        self,
        roots: Sequence[Joint],
        bone_names: Sequence[str],
        is_flat: bool = False
    ):
        """
        Args:
            roots: Top-level joints (one for a hierarchy, all bones when flat)
            bone_names: Controller joint names in bone index order
            is_flat: True when built from bind matrices without a hierarchy
        """
        self.roots: Tuple[Joint, ...] = tuple(roots)
        self.bone_names: List[str] = list(bone_names)
        self.is_flat = is_flat
        self.joints_by_id: Dict[str, Joint] = {joint.id: joint for joint in self.walk()}

    def __repr__(self) -> str:
        return f"Skeleton(joints={self.num_joints}, bones={self.num_bones}, flat={self.is_flat})"

    @property
    def num_bones(self) -> int:
        return len(self.bone_names)

    @property
    def num_joints(self) -> int:
        return len(self.joints_by_id)

    @property
    def joint_ids(self) -> List[str]:
        """Joint ids in depth-first order."""
        return [joint.id for joint in self.walk()]

    def walk(self) -> Iterator[Joint]:
        """Depth-first iteration over all joints."""
        for root in self.roots:
            yield from root.walk()

    def get_joint(self, joint_id: str) -> Joint:
        """Get joint by id."""
        return self.joints_by_id[joint_id]

    def bind_positions(self) -> np.ndarray:
        """
        Bind-pose world position of every bone.

        Returns:
            (num_bones, 3) array in bone index order
        """
        positions = np.zeros((self.num_bones, 3), dtype=np.float64)
        for joint in self.walk():
            positions[joint.index] = joint.world_position
        return positions
