"""
Wavefront OBJ loader.

Reads static meshes split into named objects (``o`` lines). Every object keeps
its own vertex, normal and uv lists and face indices refer to them (1-based
in the file, 0-based in the result). Faces may be triangles or quads; quads
are split into the corner triangles [0, 1, 2] and [2, 3, 0].

Material and smoothing statements are ignored.
"""

from typing import Iterable, List, Optional, Union
from pathlib import Path
import logging
import numpy as np

from ..core.exceptions import ParseError
from .mesh import MeshData, index_array

logger = logging.getLogger(__name__)

IGNORED_COMMANDS = ('mtllib', 'usemtl', 's')


class _ObjModel:
    """Mutable accumulator for one 'o' block."""

    def __init__(self, name: str):
        self.name = name
        self.vertices: List[List[float]] = []
        self.normals: List[List[float]] = []
        self.uvs: List[List[float]] = []
        self.face_vertices: List[List[int]] = []
        self.face_normals: List[List[int]] = []
        self.face_uvs: List[List[int]] = []

    def to_mesh(self, include_normals: bool, include_uvs: bool) -> MeshData:
        return MeshData(
            vertices=np.asarray(self.vertices, dtype=np.float64).reshape(-1, 3),
            normals=np.asarray(self.normals, dtype=np.float64).reshape(-1, 3),
            uvs=np.asarray(self.uvs, dtype=np.float64).reshape(-1, 2),
            face_vertices=index_array(self.face_vertices),
            face_normals=index_array(self.face_normals) if include_normals else None,
            face_uvs=index_array(self.face_uvs) if include_uvs else None,
            name=self.name,
        )


def _parse_floats(params: str, count: int, command: str, line_number: int) -> List[float]:
    tokens = params.split()
    if len(tokens) != count:
        raise ParseError(f"Line {line_number}: '{command}' needs {count} values, got {len(tokens)}")
    try:
        return [float(token) for token in tokens]
    except ValueError as e:
        raise ParseError(f"Line {line_number}: invalid '{command}' values: {params!r}") from e


def _parse_index(token: str, available: int, what: str, line_number: int) -> int:
    try:
        index = int(token) - 1
    except ValueError as e:
        raise ParseError(f"Line {line_number}: invalid {what} index {token!r}") from e
    if not 0 <= index < available:
        raise ParseError(f"Line {line_number}: {what} {index + 1} not found ({available} defined)")
    return index


def _parse_face(
    params: str,
    model: _ObjModel,
    include_normals: bool,
    include_uvs: bool,
    line_number: int
):
    points = params.split()
    if not 3 <= len(points) <= 4:
        raise ParseError(f"Line {line_number}: faces need 3 or 4 points, got {len(points)}")

    required_parts = 1 + int(include_uvs) + int(include_normals)
    corners = []
    for point in points:
        parts = point.split('/')
        if len(parts) < required_parts:
            raise ParseError(f"Line {line_number}: point {point!r} lacks uv or normal index")

        vertex = _parse_index(parts[0], len(model.vertices), 'vertex', line_number)
        uv = _parse_index(parts[1], len(model.uvs), 'uv', line_number) if include_uvs else None
        normal = _parse_index(parts[2], len(model.normals), 'normal', line_number) if include_normals else None
        corners.append((vertex, uv, normal))

    triangles = [[0, 1, 2]]
    if len(corners) == 4:
        triangles.append([2, 3, 0])

    for triangle in triangles:
        model.face_vertices.append([corners[k][0] for k in triangle])
        if include_uvs:
            model.face_uvs.append([corners[k][1] for k in triangle])
        if include_normals:
            model.face_normals.append([corners[k][2] for k in triangle])


def parse_obj(
    lines: Iterable[str],
    include_normals: bool = True,
    include_uvs: bool = False
) -> List[MeshData]:
    """
    Parse OBJ text into one mesh per object.

    Args:
        lines: OBJ text lines
        include_normals: Read 'vn' lines and require normal indices in faces
        include_uvs: Read 'vt' lines and require uv indices in faces

    Returns:
        Meshes in file order

    Raises:
        ParseError: On malformed statements, out-of-range indices or geometry
            before the first 'o' line
    """
    models: List[_ObjModel] = []
    current: Optional[_ObjModel] = None

    for line_number, line in enumerate(lines, start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith('#'):
            continue

        parts = stripped.split(None, 1)
        if len(parts) < 2:
            logger.warning(f"Line {line_number}: skipping statement without parameters: {stripped!r}")
            continue
        command, params = parts[0].lower(), parts[1]

        if command == 'o':
            current = _ObjModel(params.strip())
            models.append(current)
            continue
        if command in IGNORED_COMMANDS:
            continue
        if command not in ('v', 'vn', 'vt', 'f'):
            logger.warning(f"Line {line_number}: skipping unknown command '{command}'")
            continue

        if current is None:
            raise ParseError(f"Line {line_number}: '{command}' before any object ('o') statement")

        if command == 'v':
            current.vertices.append(_parse_floats(params, 3, command, line_number))
        elif command == 'vn':
            if include_normals:
                current.normals.append(_parse_floats(params, 3, command, line_number))
        elif command == 'vt':
            if include_uvs:
                current.uvs.append(_parse_floats(params, 2, command, line_number))
        else:
            _parse_face(params, current, include_normals, include_uvs, line_number)

    return [model.to_mesh(include_normals, include_uvs) for model in models]


def load_obj(
    path: Union[str, Path],
    include_normals: bool = True,
    include_uvs: bool = False
) -> List[MeshData]:
    """
    Load an OBJ file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ParseError: If the file is malformed
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"OBJ file not found: {path}")

    logger.info(f"Loading OBJ file: {path}")
    with open(path, 'r') as f:
        meshes = parse_obj(f, include_normals=include_normals, include_uvs=include_uvs)

    for mesh in meshes:
        logger.info(f"  Model '{mesh.name}': {mesh.num_vertices} vertices, {mesh.num_faces} faces")
    return meshes
