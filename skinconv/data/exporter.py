"""
JSON snapshot export.

Snapshot layout of a skinned COLLADA asset:

    version      format version
    vertices     [[x, y, z], ...]
    normals      [[x, y, z], ...]
    uvs          [[s, t], ...]
    faces        [{"v": [a, b, c], "n": [...], "t": [...]}, ...]
    bones        bind position per bone index
    boneIndexes  joint names in bone index order
    weights      per vertex [[bone_index, weight], ...], strongest first
    matrix       bind shape matrix or null
    skeleton     joint tree (a list of roots for flat skeletons)
    animation    {"parts": [{"id", "boneIndex", "timeArray", "transforms"}]}

Every matrix is written as 16 floats in column-major order.
"""

from typing import Any, Dict, List, Optional, Sequence, Union
from pathlib import Path
import json
import logging

from ..core.constants import FORMAT_VERSION
from ..core.types import WeightBinding
from ..skeleton.animation import AnimationTrack
from ..skeleton.joint import Joint, Skeleton
from ..utils.matrix import to_column_major
from .mesh import MeshData

logger = logging.getLogger(__name__)


def faces_to_list(mesh: MeshData) -> List[Dict[str, List[int]]]:
    """Per-triangle index records; 'n' and 't' only when the mesh has them."""
    faces = []
    for f in range(mesh.num_faces):
        face = {'v': mesh.face_vertices[f].tolist()}
        if mesh.face_normals is not None:
            face['n'] = mesh.face_normals[f].tolist()
        if mesh.face_uvs is not None:
            face['t'] = mesh.face_uvs[f].tolist()
        faces.append(face)
    return faces


def joint_to_dict(joint: Joint) -> Dict[str, Any]:
    """Recursive joint record."""
    return {
        'id': joint.id,
        'index': joint.index,
        'matrix': to_column_major(joint.local_matrix),
        'pos': joint.world_position.tolist(),
        'offset': joint.offset.tolist(),
        'jointLength': joint.joint_length,
        'rot': joint.rotation.tolist(),
        'children': [joint_to_dict(child) for child in joint.children],
    }


def skeleton_to_dict(skeleton: Skeleton) -> Union[Dict[str, Any], List[Dict[str, Any]]]:
    if skeleton.is_flat:
        return [joint_to_dict(root) for root in skeleton.roots]
    return joint_to_dict(skeleton.roots[0])


def track_to_dict(track: AnimationTrack) -> Dict[str, Any]:
    return {
        'id': track.channel_id,
        'boneIndex': track.joint_index,
        'timeArray': track.time_array.tolist(),
        'transforms': [to_column_major(matrix) for matrix in track.transforms],
    }


def weights_to_list(binding: WeightBinding) -> List[List[List[float]]]:
    return [[[joint_index, weight] for joint_index, weight in weight_set] for weight_set in binding]


def mesh_snapshot(mesh: MeshData) -> Dict[str, Any]:
    """Snapshot of a static mesh (OBJ conversion)."""
    return {
        'version': FORMAT_VERSION,
        'name': mesh.name,
        'vertices': mesh.vertices.tolist(),
        'normals': mesh.normals.tolist(),
        'uvs': mesh.uvs.tolist(),
        'faces': faces_to_list(mesh),
    }


def skinned_snapshot(
    mesh: MeshData,
    skeleton: Skeleton,
    binding: WeightBinding,
    bind_shape_matrix=None,
    tracks: Sequence[AnimationTrack] = ()
) -> Dict[str, Any]:
    """
    Snapshot of a skinned asset.

    Args:
        mesh: Geometry
        skeleton: Bind skeleton
        binding: Weight binding per vertex
        bind_shape_matrix: (4, 4) controller bind shape matrix or None
        tracks: Animation tracks in channel order

    Returns:
        JSON-serializable dict
    """
    return {
        'version': FORMAT_VERSION,
        'vertices': mesh.vertices.tolist(),
        'normals': mesh.normals.tolist(),
        'uvs': mesh.uvs.tolist(),
        'faces': faces_to_list(mesh),
        'bones': skeleton.bind_positions().tolist(),
        'boneIndexes': list(skeleton.bone_names),
        'weights': weights_to_list(binding),
        'matrix': to_column_major(bind_shape_matrix) if bind_shape_matrix is not None else None,
        'skeleton': skeleton_to_dict(skeleton),
        'animation': {
            'parts': [track_to_dict(track) for track in tracks],
        },
    }


def output_path(
    input_path: Union[str, Path],
    output_dir: Optional[Union[str, Path]] = None,
    suffix: str = ''
) -> Path:
    """
    Snapshot path for an input file: ``<stem><suffix>.json``.

    Placed in output_dir when given, otherwise next to the input.
    """
    input_path = Path(input_path)
    directory = Path(output_dir) if output_dir is not None else input_path.parent
    return directory / f"{input_path.stem}{suffix}.json"


def write_json(data: Dict[str, Any], path: Union[str, Path], indent: Optional[int] = None) -> Path:
    """Write a snapshot, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(data, f, indent=indent)
    logger.info(f"Saved snapshot: {path}")
    return path
