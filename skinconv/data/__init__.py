"""
Data module for skinconv.

Contains:
- Document: Scene document node tree over ElementTree
- Mesh: Indexed triangle mesh container
- COLLADA: Geometry, skin, scene and animation extraction
- OBJ: Wavefront OBJ loader
- Exporter: JSON snapshot writer
"""

from .document import DocumentNode, parse_document, parse_document_string
from .mesh import MeshData, fan_triangulate, index_array
from .collada import (
    SkinData,
    ColladaAsset,
    read_float_source,
    read_name_source,
    parse_geometry,
    parse_skin,
    parse_visual_scene,
    parse_animations,
    count_clips,
    read_collada,
    load_collada,
)
from .obj_loader import parse_obj, load_obj
from .exporter import (
    faces_to_list,
    joint_to_dict,
    skeleton_to_dict,
    track_to_dict,
    weights_to_list,
    mesh_snapshot,
    skinned_snapshot,
    output_path,
    write_json,
)

__all__ = [
    # Document
    'DocumentNode',
    'parse_document',
    'parse_document_string',
    # Mesh
    'MeshData',
    'fan_triangulate',
    'index_array',
    # COLLADA
    'SkinData',
    'ColladaAsset',
    'read_float_source',
    'read_name_source',
    'parse_geometry',
    'parse_skin',
    'parse_visual_scene',
    'parse_animations',
    'count_clips',
    'read_collada',
    'load_collada',
    # OBJ
    'parse_obj',
    'load_obj',
    # Export
    'faces_to_list',
    'joint_to_dict',
    'skeleton_to_dict',
    'track_to_dict',
    'weights_to_list',
    'mesh_snapshot',
    'skinned_snapshot',
    'output_path',
    'write_json',
]
