"""
Tests for the Wavefront OBJ loader.
"""

import pytest
import numpy as np

from conftest import OBJ_TEXT
from skinconv.core.exceptions import ParseError
from skinconv.data.obj_loader import load_obj, parse_obj


FLOOR_ONLY = OBJ_TEXT.split('o Wedge')[0]


class TestParseObj:
    """Tests for parsing OBJ text."""

    def test_one_mesh_per_object(self):
        """Objects come back in file order."""
        meshes = parse_obj(OBJ_TEXT.splitlines())
        assert [mesh.name for mesh in meshes] == ['Floor', 'Wedge']

    def test_quad_split(self):
        """A quad becomes triangles [0, 1, 2] and [2, 3, 0]."""
        floor = parse_obj(OBJ_TEXT.splitlines())[0]
        assert floor.face_vertices.tolist() == [[0, 1, 2], [2, 3, 0]]
        assert floor.face_normals.tolist() == [[0, 0, 0], [0, 0, 0]]
        assert floor.num_vertices == 4

    def test_indices_are_per_object(self):
        """Each object's face indices refer to its own vertices."""
        wedge = parse_obj(OBJ_TEXT.splitlines())[1]
        assert wedge.face_vertices.tolist() == [[0, 1, 2]]
        assert np.allclose(wedge.vertices[2], [0, 1, 0])
        assert np.allclose(wedge.normals, [[0, 0, 1]])

    def test_uvs_optional(self):
        """Texture coordinates are read only on request."""
        floor = parse_obj(FLOOR_ONLY.splitlines())[0]
        assert floor.face_uvs is None

        floor = parse_obj(FLOOR_ONLY.splitlines(), include_uvs=True)[0]
        assert floor.uvs.shape == (2, 2)
        assert floor.face_uvs.tolist() == [[0, 1, 0], [0, 1, 0]]

    def test_without_normals(self):
        """Normals can be skipped entirely."""
        floor = parse_obj(FLOOR_ONLY.splitlines(), include_normals=False)[0]
        assert floor.face_normals is None
        assert len(floor.normals) == 0

    def test_geometry_before_object_raises(self):
        """Vertices need an enclosing 'o' statement."""
        with pytest.raises(ParseError):
            parse_obj(['v 0 0 0', 'o Late'])

    def test_index_out_of_range_raises(self):
        """Faces may only reference existing vertices."""
        with pytest.raises(ParseError):
            parse_obj(['o Bad', 'v 0 0 0', 'v 1 0 0', 'vn 0 0 1', 'f 1//1 2//1 3//1'])

    def test_missing_normal_index_raises(self):
        """Faces must carry normal indices when normals are read."""
        with pytest.raises(ParseError):
            parse_obj(['o Bad', 'v 0 0 0', 'v 1 0 0', 'v 0 1 0', 'f 1 2 3'])

    def test_bad_vertex_raises(self):
        """Vertices need three numbers."""
        with pytest.raises(ParseError):
            parse_obj(['o Bad', 'v 0 0'])

    def test_polygon_raises(self):
        """Faces with more than four points are rejected."""
        lines = ['o Bad'] + ['v 0 0 0'] * 5 + ['vn 0 0 1', 'f 1//1 2//1 3//1 4//1 5//1']
        with pytest.raises(ParseError):
            parse_obj(lines)

    def test_unknown_command_warns(self, caplog):
        """Unknown statements are skipped with a warning."""
        meshes = parse_obj(['o A', 'l 1 2', 'v 0 0 0'])
        assert meshes[0].num_vertices == 1
        assert "unknown command 'l'" in caplog.text


class TestLoadObj:
    """Tests for loading OBJ files from disk."""

    def test_load(self, obj_path):
        """Files parse like text."""
        meshes = load_obj(obj_path)
        assert [mesh.num_faces for mesh in meshes] == [2, 1]

    def test_missing_file_raises(self, tmp_path):
        """A missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_obj(tmp_path / 'missing.obj')
