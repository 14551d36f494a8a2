"""
COLLADA (.dae) extraction.

Reads the parts of a COLLADA 1.4 document a skinned character needs:

- geometry: positions, normals, texture coordinates and triangle indices
- skin controller: joint names, inverse bind matrices, bind shape matrix
  and the raw vertex weight arrays
- visual scene: the node tree the skeleton is built from
- animations: matrix channels with their sample times

Everything is read through DocumentNode, so a schema mismatch surfaces as a
ParseError naming the offending element.
"""

from typing import Dict, List, NamedTuple, Optional, Tuple, Union
from pathlib import Path
import logging
import numpy as np

from ..core.exceptions import MultipleRootsError, ParseError
from ..skeleton.animation import AnimationChannel
from ..utils.matrix import matrices_from_values, parse_matrix_values
from .document import DocumentNode, parse_document
from .mesh import MeshData, fan_triangulate, index_array

logger = logging.getLogger(__name__)


class SkinData(NamedTuple):
    """Skin controller contents, weights still in COLLADA's indexed form."""
    joint_names: List[str]               # Joint short ids in bone index order
    inverse_bind_matrices: np.ndarray    # (J, 4, 4)
    bind_shape_matrix: Optional[np.ndarray]
    vcount: List[int]                    # Influences per vertex
    v: List[int]                         # Interleaved index groups
    weight_table: List[float]
    joint_offset: int
    weight_offset: int
    stride: int

    @property
    def num_joints(self) -> int:
        return len(self.joint_names)


class ColladaAsset(NamedTuple):
    """Everything extracted from one COLLADA document."""
    mesh: MeshData
    skin: Optional[SkinData]
    scene: DocumentNode
    channels: List[AnimationChannel]
    clip_count: int


# =============================================================================
# Sources and Inputs
# =============================================================================

def _int_attr(node: DocumentNode, name: str, default: int = 0, minimum: Optional[int] = None) -> int:
    value = node.get(name)
    if value is None:
        return default
    try:
        number = int(value)
    except ValueError as e:
        raise ParseError(f"{node!r} attribute '{name}' is not an integer: {value!r}") from e
    if minimum is not None and number < minimum:
        raise ParseError(f"{node!r} attribute '{name}' must be at least {minimum}, got {number}")
    return number


def _source_map(parent: DocumentNode) -> Dict[str, DocumentNode]:
    """Sources declared directly under parent, keyed by id."""
    return {source.attr('id'): source for source in parent.children_named('source')}


def _resolve(url: str, sources: Dict[str, DocumentNode]) -> DocumentNode:
    source = sources.get(url.lstrip('#'))
    if source is None:
        raise ParseError(f"Reference to unknown source '{url}'")
    return source


def _input_urls(node: DocumentNode) -> Dict[str, str]:
    """Semantic -> source url of the <input> children (first of each semantic)."""
    urls: Dict[str, str] = {}
    for item in node.children_named('input'):
        urls.setdefault(item.attr('semantic'), item.attr('source'))
    return urls


def _required_url(urls: Dict[str, str], semantic: str, owner: DocumentNode) -> str:
    if semantic not in urls:
        raise ParseError(f"{owner!r} has no {semantic} input")
    return urls[semantic]


def read_float_source(source: DocumentNode) -> np.ndarray:
    """
    Float values of a <source>, grouped by the accessor stride.

    Returns:
        (count, stride) float64 array
    """
    values = source.child('float_array').float_values()

    stride = 1
    technique = source.find('technique_common')
    accessor = technique.find('accessor') if technique is not None else None
    if accessor is not None:
        stride = _int_attr(accessor, 'stride', 1, minimum=1)

    if stride < 1 or len(values) % stride != 0:
        raise ParseError(f"{source!r}: {len(values)} values do not fit stride {stride}")
    return np.asarray(values, dtype=np.float64).reshape(-1, stride)


def read_name_source(source: DocumentNode) -> Tuple[List[str], bool]:
    """
    Names of a <source>.

    Returns:
        (names, is_idref): is_idref is True for IDREF_array (node ids) and
        False for Name_array (scoped ids)
    """
    array = source.find('Name_array')
    if array is not None:
        return array.name_values(), False
    array = source.find('IDREF_array')
    if array is not None:
        return array.name_values(), True
    raise ParseError(f"{source!r} has neither Name_array nor IDREF_array")


# =============================================================================
# Geometry
# =============================================================================

def _check_indices(indices: np.ndarray, count: int, what: str, owner: DocumentNode):
    if len(indices) and (indices.min() < 0 or indices.max() >= count):
        raise ParseError(
            f"{owner!r}: {what} index {int(indices.max())} out of range ({count} {what}s)"
        )


def parse_geometry(root: DocumentNode) -> MeshData:
    """
    Read the document's mesh.

    Only the first <geometry> is read. <triangles> are taken as-is and
    <polylist> polygons are fan triangulated; other primitive types are
    skipped with a warning. Only the first TEXCOORD set is read.

    Raises:
        ParseError: If the geometry is missing or inconsistent
    """
    library = root.find('library_geometries')
    geometries = library.children_named('geometry') if library is not None else []
    if not geometries:
        raise ParseError("Document has no <geometry>")
    if len(geometries) > 1:
        logger.warning(f"Document has {len(geometries)} geometries, using {geometries[0]!r}")

    geometry = geometries[0]
    mesh = geometry.child('mesh')
    sources = _source_map(mesh)

    vertices_node = mesh.child('vertices')
    vertex_urls = _input_urls(vertices_node)
    positions = read_float_source(_resolve(_required_url(vertex_urls, 'POSITION', vertices_node), sources))
    if positions.shape[1] < 3:
        raise ParseError(f"{vertices_node!r}: positions need 3 components, got {positions.shape[1]}")

    # Normals may hang off <vertices>, in which case they share the position index
    normal_url = vertex_urls.get('NORMAL')
    normals_per_vertex = normal_url is not None
    uv_url = None

    face_v, face_n, face_t = [], [], []

    for primitive in mesh.children:
        if primitive.tag not in ('triangles', 'polylist'):
            if primitive.tag in ('lines', 'linestrips', 'polygons', 'trifans', 'tristrips'):
                logger.warning(f"Skipping unsupported primitive <{primitive.tag}> in {geometry!r}")
            continue

        offsets: Dict[str, int] = {}
        stride = 0
        for item in primitive.children_named('input'):
            semantic = item.attr('semantic')
            offset = _int_attr(item, 'offset', 0, minimum=0)
            stride = max(stride, offset + 1)
            if semantic == 'VERTEX':
                offsets['v'] = offset
            elif semantic == 'NORMAL' and not normals_per_vertex:
                offsets.setdefault('n', offset)
                normal_url = normal_url or item.attr('source')
            elif semantic == 'TEXCOORD':
                if 't' not in offsets:
                    offsets['t'] = offset
                    uv_url = uv_url or item.attr('source')
        if 'v' not in offsets:
            raise ParseError(f"{primitive!r} has no VERTEX input")

        p_node = primitive.find('p')
        indices = p_node.int_values() if p_node is not None else []
        if len(indices) % stride != 0:
            raise ParseError(f"{primitive!r}: {len(indices)} indices do not fit stride {stride}")
        corners = np.asarray(indices, dtype=np.int64).reshape(-1, stride)

        if primitive.tag == 'triangles':
            if len(corners) % 3 != 0:
                raise ParseError(f"{primitive!r}: {len(corners)} corners is not a whole number of triangles")
            triangles = [[k, k + 1, k + 2] for k in range(0, len(corners), 3)]
        else:
            vcount = primitive.child('vcount').int_values()
            if sum(vcount) != len(corners):
                raise ParseError(f"{primitive!r}: vcount sums to {sum(vcount)}, found {len(corners)} corners")
            triangles = []
            start = 0
            for count in vcount:
                triangles.extend(fan_triangulate(list(range(start, start + count))))
                start += count

        for triangle in triangles:
            rows = corners[triangle]
            face_v.append(rows[:, offsets['v']])
            if normals_per_vertex:
                face_n.append(rows[:, offsets['v']])
            elif 'n' in offsets:
                face_n.append(rows[:, offsets['n']])
            if 't' in offsets:
                face_t.append(rows[:, offsets['t']])

    normals = np.zeros((0, 3), dtype=np.float64)
    if normal_url is not None:
        normals = read_float_source(_resolve(normal_url, sources))[:, :3]
    uvs = np.zeros((0, 2), dtype=np.float64)
    if uv_url is not None:
        uvs = read_float_source(_resolve(uv_url, sources))[:, :2]

    face_vertices = index_array(face_v)
    face_normals = index_array(face_n) if face_n else None
    face_uvs = index_array(face_t) if face_t else None

    if face_normals is not None and len(face_normals) != len(face_vertices):
        raise ParseError(f"{geometry!r}: normal indices missing on some primitives")
    if face_uvs is not None and len(face_uvs) != len(face_vertices):
        raise ParseError(f"{geometry!r}: uv indices missing on some primitives")

    _check_indices(face_vertices, len(positions), 'position', geometry)
    if face_normals is not None:
        _check_indices(face_normals, len(normals), 'normal', geometry)
    if face_uvs is not None:
        _check_indices(face_uvs, len(uvs), 'uv', geometry)

    logger.debug(f"Geometry {geometry!r}: {len(positions)} positions, {len(face_vertices)} triangles")

    return MeshData(
        vertices=positions[:, :3].copy(),
        normals=normals,
        uvs=uvs,
        face_vertices=face_vertices,
        face_normals=face_normals,
        face_uvs=face_uvs,
        name=geometry.name or geometry.id or '',
    )


# =============================================================================
# Skin Controller
# =============================================================================

def parse_skin(root: DocumentNode) -> Optional[SkinData]:
    """
    Read the first skin controller, or None if the document has none.

    IDREF joint lists are translated to the scoped ids of the nodes they
    reference so they match the ids the skeleton builder uses.

    Raises:
        ParseError: If the controller is incomplete or inconsistent
    """
    library = root.find('library_controllers')
    if library is None:
        return None
    skins = [
        controller.find('skin')
        for controller in library.children_named('controller')
        if controller.find('skin') is not None
    ]
    if not skins:
        return None
    if len(skins) > 1:
        logger.warning(f"Document has {len(skins)} skin controllers, using the first")

    skin = skins[0]
    sources = _source_map(skin)

    bind_shape_node = skin.find('bind_shape_matrix')
    bind_shape_matrix = None
    if bind_shape_node is not None:
        bind_shape_matrix = parse_matrix_values(bind_shape_node.float_values())

    joints_node = skin.child('joints')
    joint_urls = _input_urls(joints_node)
    joint_names, is_idref = read_name_source(
        _resolve(_required_url(joint_urls, 'JOINT', joints_node), sources)
    )
    if is_idref:
        resolved = []
        for name in joint_names:
            node = root.find_by_id(name)
            resolved.append(node.short_id if node is not None else name)
        joint_names = resolved

    inverse_bind_source = _resolve(_required_url(joint_urls, 'INV_BIND_MATRIX', joints_node), sources)
    inverse_bind_matrices = matrices_from_values(inverse_bind_source.child('float_array').float_values())
    if len(inverse_bind_matrices) != len(joint_names):
        raise ParseError(
            f"Skin lists {len(joint_names)} joints but {len(inverse_bind_matrices)} inverse bind matrices"
        )

    weights_node = skin.child('vertex_weights')
    joint_offset = weight_offset = None
    weight_url = None
    stride = 0
    for item in weights_node.children_named('input'):
        semantic = item.attr('semantic')
        offset = _int_attr(item, 'offset', 0, minimum=0)
        stride = max(stride, offset + 1)
        if semantic == 'JOINT':
            joint_offset = offset
        elif semantic == 'WEIGHT':
            weight_offset = offset
            weight_url = item.attr('source')
    if joint_offset is None or weight_offset is None:
        raise ParseError(f"{weights_node!r} needs both JOINT and WEIGHT inputs")

    weight_table = read_float_source(_resolve(weight_url, sources)).ravel().tolist()
    vcount_node = weights_node.find('vcount')
    v_node = weights_node.find('v')

    return SkinData(
        joint_names=joint_names,
        inverse_bind_matrices=inverse_bind_matrices,
        bind_shape_matrix=bind_shape_matrix,
        vcount=vcount_node.int_values() if vcount_node is not None else [],
        v=v_node.int_values() if v_node is not None else [],
        weight_table=weight_table,
        joint_offset=joint_offset,
        weight_offset=weight_offset,
        stride=stride,
    )


# =============================================================================
# Scene and Animations
# =============================================================================

def parse_visual_scene(root: DocumentNode) -> DocumentNode:
    """
    The document's single visual scene.

    Raises:
        ParseError: If there is none
        MultipleRootsError: If there is more than one
    """
    library = root.find('library_visual_scenes')
    scenes = library.children_named('visual_scene') if library is not None else []
    if not scenes:
        raise ParseError("Document has no <visual_scene>")
    if len(scenes) > 1:
        raise MultipleRootsError(f"Expected one visual scene, found {len(scenes)}")
    return scenes[0]


def count_clips(root: DocumentNode, num_channels: int) -> int:
    """
    Number of animation clips in the document.

    Uses <library_animation_clips> when present. Otherwise each top-level
    <animation> that only groups nested animations counts as one clip, and
    loose channels count as a single clip.
    """
    clips_library = root.find('library_animation_clips')
    if clips_library is not None:
        clips = clips_library.children_named('animation_clip')
        if clips:
            return len(clips)

    if num_channels == 0:
        return 0

    library = root.find('library_animations')
    containers = [
        animation for animation in library.children_named('animation')
        if animation.children_named('animation') and not animation.children_named('channel')
    ]
    return max(len(containers), 1)


def parse_animations(root: DocumentNode) -> Tuple[List[AnimationChannel], int]:
    """
    Read every animation channel, nested containers included.

    A channel is identified by its <animation> id when that animation drives
    exactly one channel, otherwise by the channel's target.

    Returns:
        (channels in document order, clip count)

    Raises:
        ParseError: If a channel's sampler or sources cannot be resolved
    """
    library = root.find('library_animations')
    if library is None:
        return [], 0

    channels = []
    for animation in library.iter('animation'):
        channel_nodes = animation.children_named('channel')
        if not channel_nodes:
            continue
        sources = _source_map(animation)
        samplers = {sampler.attr('id'): sampler for sampler in animation.children_named('sampler')}

        for channel in channel_nodes:
            sampler = samplers.get(channel.attr('source').lstrip('#'))
            if sampler is None:
                raise ParseError(f"{channel!r} references unknown sampler '{channel.attr('source')}'")
            urls = _input_urls(sampler)
            times = read_float_source(_resolve(_required_url(urls, 'INPUT', sampler), sources)).ravel()
            values = read_float_source(_resolve(_required_url(urls, 'OUTPUT', sampler), sources)).ravel()

            if len(channel_nodes) == 1 and animation.id:
                channel_id = animation.id
            else:
                channel_id = channel.attr('target')
            channels.append(AnimationChannel(channel_id=channel_id, times=times, values=values))

    return channels, count_clips(root, len(channels))


# =============================================================================
# Document
# =============================================================================

def read_collada(root: DocumentNode) -> ColladaAsset:
    """
    Extract a ColladaAsset from a parsed document.

    Raises:
        ParseError: If root is not a COLLADA document or a section is malformed
        MultipleRootsError: If the document has several visual scenes
    """
    if root.tag != 'COLLADA':
        raise ParseError(f"Expected a <COLLADA> document, got {root!r}")

    mesh = parse_geometry(root)
    skin = parse_skin(root)
    scene = parse_visual_scene(root)
    channels, clip_count = parse_animations(root)

    return ColladaAsset(mesh=mesh, skin=skin, scene=scene, channels=channels, clip_count=clip_count)


def load_collada(path: Union[str, Path]) -> ColladaAsset:
    """
    Parse a .dae file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ParseError: If the file is malformed
    """
    logger.info(f"Loading COLLADA file: {path}")
    return read_collada(parse_document(path))
