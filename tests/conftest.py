"""
Pytest configuration and fixtures for skinconv tests.
"""

import matplotlib
matplotlib.use('Agg')

import numpy as np
import pytest

from skinconv.data.collada import read_collada
from skinconv.data.document import DocumentNode, parse_document_string
from skinconv.skeleton.animation import load_tracks
from skinconv.skeleton.builder import build_skeleton


# =============================================================================
# Inline COLLADA rig
# =============================================================================

# Three joints root -> mid -> tip with local translations (0,10,0), (0,5,0),
# (0,5,0) under a non-joint 'Armature' node. A quad skinned to the joints and
# one animation that turns 'mid' by 90 degrees about Z on its second sample.
RIG_DAE = """\
<COLLADA xmlns="http://www.collada.org/2005/11/COLLADASchema" version="1.4.1">
  <library_geometries>
    <geometry id="body-mesh" name="body">
      <mesh>
        <source id="body-positions">
          <float_array id="body-positions-array" count="12">0 0 0 1 0 0 1 20 0 0 20 0</float_array>
          <technique_common>
            <accessor source="#body-positions-array" count="4" stride="3"/>
          </technique_common>
        </source>
        <source id="body-normals">
          <float_array id="body-normals-array" count="3">0 0 1</float_array>
          <technique_common>
            <accessor source="#body-normals-array" count="1" stride="3"/>
          </technique_common>
        </source>
        <source id="body-uvs">
          <float_array id="body-uvs-array" count="8">0 0 1 0 1 1 0 1</float_array>
          <technique_common>
            <accessor source="#body-uvs-array" count="4" stride="2"/>
          </technique_common>
        </source>
        <vertices id="body-vertices">
          <input semantic="POSITION" source="#body-positions"/>
        </vertices>
        <triangles count="2">
          <input semantic="VERTEX" source="#body-vertices" offset="0"/>
          <input semantic="NORMAL" source="#body-normals" offset="1"/>
          <input semantic="TEXCOORD" source="#body-uvs" offset="2" set="0"/>
          <p>0 0 0 1 0 1 2 0 2 0 0 0 2 0 2 3 0 3</p>
        </triangles>
      </mesh>
    </geometry>
  </library_geometries>
  <library_controllers>
    <controller id="body-skin">
      <skin source="#body-mesh">
        <bind_shape_matrix>1 0 0 0 0 1 0 0 0 0 1 0 0 0 0 1</bind_shape_matrix>
        <source id="body-skin-joints">
          <Name_array id="body-skin-joints-array" count="3">root mid tip</Name_array>
          <technique_common>
            <accessor source="#body-skin-joints-array" count="3" stride="1">
              <param name="JOINT" type="name"/>
            </accessor>
          </technique_common>
        </source>
        <source id="body-skin-bind-poses">
          <float_array id="body-skin-bind-poses-array" count="48">1 0 0 0 0 1 0 -10 0 0 1 0 0 0 0 1 1 0 0 0 0 1 0 -15 0 0 1 0 0 0 0 1 1 0 0 0 0 1 0 -20 0 0 1 0 0 0 0 1</float_array>
          <technique_common>
            <accessor source="#body-skin-bind-poses-array" count="3" stride="16">
              <param name="TRANSFORM" type="float4x4"/>
            </accessor>
          </technique_common>
        </source>
        <source id="body-skin-weights">
          <float_array id="body-skin-weights-array" count="4">1 0.5 0.25 0.75</float_array>
          <technique_common>
            <accessor source="#body-skin-weights-array" count="4" stride="1">
              <param name="WEIGHT" type="float"/>
            </accessor>
          </technique_common>
        </source>
        <joints>
          <input semantic="JOINT" source="#body-skin-joints"/>
          <input semantic="INV_BIND_MATRIX" source="#body-skin-bind-poses"/>
        </joints>
        <vertex_weights count="4">
          <input semantic="JOINT" source="#body-skin-joints" offset="0"/>
          <input semantic="WEIGHT" source="#body-skin-weights" offset="1"/>
          <vcount>1 1 2 2</vcount>
          <v>0 0 0 0 1 1 2 1 1 2 2 3</v>
        </vertex_weights>
      </skin>
    </controller>
  </library_controllers>
  <library_animations>
    <animation id="Armature_mid_pose_matrix">
      <source id="mid-input">
        <float_array id="mid-input-array" count="2">0 1</float_array>
        <technique_common>
          <accessor source="#mid-input-array" count="2" stride="1"/>
        </technique_common>
      </source>
      <source id="mid-output">
        <float_array id="mid-output-array" count="32">1 0 0 0 0 1 0 5 0 0 1 0 0 0 0 1 0 -1 0 0 1 0 0 5 0 0 1 0 0 0 0 1</float_array>
        <technique_common>
          <accessor source="#mid-output-array" count="2" stride="16"/>
        </technique_common>
      </source>
      <sampler id="mid-sampler">
        <input semantic="INPUT" source="#mid-input"/>
        <input semantic="OUTPUT" source="#mid-output"/>
      </sampler>
      <channel source="#mid-sampler" target="Armature_mid/transform"/>
    </animation>
  </library_animations>
  <library_visual_scenes>
    <visual_scene id="Scene" name="Scene">
      <node id="Armature" name="Armature" type="NODE">
        <node id="Armature_root" name="root" sid="root" type="JOINT">
          <matrix sid="transform">1 0 0 0 0 1 0 10 0 0 1 0 0 0 0 1</matrix>
          <node id="Armature_mid" name="mid" sid="mid" type="JOINT">
            <matrix sid="transform">1 0 0 0 0 1 0 5 0 0 1 0 0 0 0 1</matrix>
            <node id="Armature_tip" name="tip" sid="tip" type="JOINT">
              <matrix sid="transform">1 0 0 0 0 1 0 5 0 0 1 0 0 0 0 1</matrix>
            </node>
          </node>
        </node>
      </node>
      <node id="body" name="body" type="NODE">
        <instance_controller url="#body-skin"/>
      </node>
    </visual_scene>
  </library_visual_scenes>
</COLLADA>
"""


OBJ_TEXT = """\
# two objects
mtllib scene.mtl
o Floor
v 0 0 0
v 1 0 0
v 1 0 1
v 0 0 1
vt 0 0
vt 1 0
vn 0 1 0
usemtl ground
s off
f 1/1/1 2/2/1 3/1/1 4/2/1
o Wedge
v 0 0 0
v 1 0 0
v 0 1 0
vn 0 0 1
f 1//1 2//1 3//1
"""


def translation_text(x: float, y: float, z: float) -> str:
    """Row-major matrix text of a pure translation."""
    return f"1 0 0 {x} 0 1 0 {y} 0 0 1 {z} 0 0 0 1"


def joint_node(sid: str, translation=(0.0, 0.0, 0.0), children=(), node_type='JOINT') -> DocumentNode:
    """Scene node with a <matrix> child holding a translation."""
    matrix = DocumentNode('matrix', {'sid': 'transform'}, translation_text(*translation))
    return DocumentNode(
        'node',
        {'id': f'Armature_{sid}', 'sid': sid, 'type': node_type},
        '',
        [matrix] + list(children),
    )


@pytest.fixture
def rig_dae_text():
    """Inline COLLADA document of the 3-joint rig."""
    return RIG_DAE


@pytest.fixture
def rig_document():
    """Parsed 3-joint rig document."""
    return parse_document_string(RIG_DAE)


@pytest.fixture
def rig_asset(rig_document):
    """Extracted 3-joint rig asset."""
    return read_collada(rig_document)


@pytest.fixture
def rig_skeleton(rig_asset):
    """Bind skeleton of the 3-joint rig."""
    return build_skeleton(
        rig_asset.scene,
        rig_asset.skin.joint_names,
        rig_asset.skin.inverse_bind_matrices,
    )


@pytest.fixture
def rig_tracks(rig_asset, rig_skeleton):
    """Animation tracks of the 3-joint rig (one track on 'mid')."""
    return load_tracks(rig_asset.channels, rig_skeleton, rig_asset.clip_count)


@pytest.fixture
def rig_dae_path(tmp_path):
    """3-joint rig written to a .dae file."""
    path = tmp_path / 'rig.dae'
    path.write_text(RIG_DAE)
    return path


@pytest.fixture
def obj_path(tmp_path):
    """Two-object OBJ file."""
    path = tmp_path / 'scene.obj'
    path.write_text(OBJ_TEXT)
    return path


@pytest.fixture
def chain_scene():
    """Visual scene node holding root -> mid -> tip under a non-joint node."""
    tip = joint_node('tip', (0.0, 5.0, 0.0))
    mid = joint_node('mid', (0.0, 5.0, 0.0), [tip])
    root = joint_node('root', (0.0, 10.0, 0.0), [mid])
    armature = DocumentNode('node', {'id': 'Armature', 'type': 'NODE'}, '', [root])
    return DocumentNode('visual_scene', {'id': 'Scene'}, '', [armature])


@pytest.fixture
def rz90():
    """Rotation of 90 degrees about Z as a 4x4 matrix."""
    return np.array([
        [0.0, -1.0, 0.0, 0.0],
        [1.0, 0.0, 0.0, 0.0],
        [0.0, 0.0, 1.0, 0.0],
        [0.0, 0.0, 0.0, 1.0],
    ])


@pytest.fixture
def make_joint_node():
    """Factory for joint scene nodes with a translation matrix."""
    return joint_node
