"""
Triangle mesh container shared by the COLLADA and OBJ readers.

Attribute arrays are indexed independently: triangle f uses positions
``vertices[face_vertices[f]]``, normals ``normals[face_normals[f]]`` and
texture coordinates ``uvs[face_uvs[f]]``.
"""

from typing import List, NamedTuple, Optional, Sequence
import numpy as np


class MeshData(NamedTuple):
    """Indexed triangle mesh."""
    vertices: np.ndarray                 # (N, 3) positions
    normals: np.ndarray                  # (M, 3)
    uvs: np.ndarray                      # (K, 2)
    face_vertices: np.ndarray            # (F, 3) position indices
    face_normals: Optional[np.ndarray]   # (F, 3) normal indices, None without normals
    face_uvs: Optional[np.ndarray]       # (F, 3) uv indices, None without uvs
    name: str = ''

    @property
    def num_vertices(self) -> int:
        return len(self.vertices)

    @property
    def num_faces(self) -> int:
        return len(self.face_vertices)


def fan_triangulate(polygon: Sequence[int]) -> List[List[int]]:
    """
    Split a convex polygon into triangles sharing its first corner.

    Args:
        polygon: Corner indices (at least 3)

    Returns:
        len(polygon) - 2 triangles
    """
    if len(polygon) < 3:
        raise ValueError(f"Polygon needs at least 3 corners, got {len(polygon)}")
    return [
        [polygon[0], polygon[k - 1], polygon[k]]
        for k in range(2, len(polygon))
    ]


def index_array(triangles: Sequence[Sequence[int]]) -> np.ndarray:
    """(F, 3) int64 array of triangle indices."""
    return np.asarray(triangles, dtype=np.int64).reshape(-1, 3)
