"""
Asset conversion pipeline.

Drives one input file from disk to its JSON snapshot(s):

    .dae  ->  document -> skeleton, weights, tracks -> <stem>.json
    .obj  ->  one mesh per object               -> <stem>_<object>.json

Batches keep going when a file fails; the failure is logged and reported in
the BatchResult.
"""

from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence, Union
from pathlib import Path
import glob
import logging

from tqdm import tqdm

from .core.exceptions import ParseError
from .core.types import WeightBinding
from .data.collada import ColladaAsset, load_collada
from .data.exporter import mesh_snapshot, output_path, skinned_snapshot, write_json
from .data.obj_loader import load_obj
from .skeleton.animation import AnimationTrack, load_tracks
from .skeleton.builder import build_skeleton
from .skeleton.joint import Skeleton
from .skeleton.pose import PoseValidation, evaluate_pose, validate_pose
from .skeleton.weights import bind_weights
from .utils.config import ConvertConfig

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = ('.dae', '.obj')


class Rig(NamedTuple):
    """Skinning data derived from a COLLADA asset."""
    skeleton: Skeleton
    binding: WeightBinding
    tracks: List[AnimationTrack]


class BatchResult(NamedTuple):
    """Outcome of a batch conversion."""
    converted: Dict[Path, List[Path]]  # input -> written snapshots
    failed: Dict[Path, str]            # input -> error message

    @property
    def ok(self) -> bool:
        return not self.failed


# =============================================================================
# COLLADA
# =============================================================================

def build_rig(asset: ColladaAsset, config: Optional[ConvertConfig] = None) -> Rig:
    """
    Build skeleton, weight binding and animation tracks of an asset.

    Raises:
        ParseError: If the asset has no skin controller or the weights do not
            cover the mesh
        SkinConvError: Any error of the skeleton, weight or animation stages
    """
    config = config or ConvertConfig()
    skin = asset.skin
    if skin is None:
        raise ParseError("Document has no skin controller")

    skeleton = build_skeleton(asset.scene, skin.joint_names, skin.inverse_bind_matrices)

    binding = bind_weights(
        skin.vcount,
        skin.v,
        skin.weight_table,
        joint_offset=skin.joint_offset,
        weight_offset=skin.weight_offset,
        stride=skin.stride,
        max_influences=config.max_influences,
        num_joints=skin.num_joints,
    )
    if len(binding) != asset.mesh.num_vertices:
        raise ParseError(
            f"Skin weights cover {len(binding)} vertices, mesh has {asset.mesh.num_vertices}"
        )

    tracks: List[AnimationTrack] = []
    if config.include_animation and asset.channels:
        tracks = load_tracks(asset.channels, skeleton, asset.clip_count)

    return Rig(skeleton=skeleton, binding=binding, tracks=tracks)


def check_poses(
    skeleton: Skeleton,
    tracks: Sequence[AnimationTrack],
    tolerance: float
) -> List[PoseValidation]:
    """
    Validate every frame shared by all tracks.

    Frames whose position chains disagree beyond tolerance are logged as
    warnings.
    """
    num_frames = min((track.num_frames for track in tracks), default=1)
    reports = []
    for frame in range(num_frames):
        report = validate_pose(skeleton, tracks, frame, atol=tolerance)
        if not report.ok:
            logger.warning(
                f"Frame {frame}: matrix and quaternion positions differ by {report.max_error:.3e} "
                f"(tolerance {tolerance:.1e})"
            )
        reports.append(report)
    return reports


def convert_dae(path: Union[str, Path], config: Optional[ConvertConfig] = None) -> List[Path]:
    """
    Convert a skinned COLLADA file.

    Args:
        path: Input .dae file
        config: Conversion settings

    Returns:
        List with the written snapshot path (plus the skeleton plot if enabled)
    """
    config = config or ConvertConfig()
    path = Path(path)

    asset = load_collada(path)
    rig = build_rig(asset, config)

    if config.validate_pose:
        check_poses(rig.skeleton, rig.tracks, config.pose_tolerance)

    snapshot = skinned_snapshot(
        asset.mesh,
        rig.skeleton,
        rig.binding,
        bind_shape_matrix=asset.skin.bind_shape_matrix,
        tracks=rig.tracks,
    )
    target = write_json(snapshot, output_path(path, config.output_dir), indent=config.indent)
    written = [target]

    logger.info(
        f"Converted {path.name}: {asset.mesh.num_vertices} vertices, "
        f"{rig.skeleton.num_joints} joints, {len(rig.tracks)} tracks"
    )

    if config.plot_skeleton:
        written.append(_plot(rig, target.with_suffix('.png')))

    return written


def _plot(rig: Rig, save_path: Path) -> Path:
    from .utils.visualization import plot_skeleton
    import matplotlib.pyplot as plt

    pose = evaluate_pose(rig.skeleton, rig.tracks, 0) if rig.tracks else None
    fig, _ = plot_skeleton(rig.skeleton, pose=pose, title=save_path.stem, save_path=str(save_path))
    plt.close(fig)
    return save_path


# =============================================================================
# OBJ
# =============================================================================

def convert_obj(path: Union[str, Path], config: Optional[ConvertConfig] = None) -> List[Path]:
    """
    Convert every object of an OBJ file to its own snapshot.

    Returns:
        Written snapshot paths, one per object
    """
    config = config or ConvertConfig()
    path = Path(path)

    meshes = load_obj(path, include_normals=config.obj_include_normals, include_uvs=config.obj_include_uvs)
    if not meshes:
        logger.warning(f"{path.name} contains no objects")

    written = []
    for mesh in meshes:
        target = output_path(path, config.output_dir, suffix=f"_{mesh.name.lower()}")
        written.append(write_json(mesh_snapshot(mesh), target, indent=config.indent))
    return written


# =============================================================================
# Batch
# =============================================================================

def convert_file(path: Union[str, Path], config: Optional[ConvertConfig] = None) -> List[Path]:
    """
    Convert one file, dispatching on its suffix.

    Raises:
        ValueError: If the suffix is not supported
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == '.dae':
        return convert_dae(path, config)
    if suffix == '.obj':
        return convert_obj(path, config)
    raise ValueError(f"Unsupported file type '{path.suffix}' (expected one of {SUPPORTED_SUFFIXES})")


def expand_inputs(patterns: Iterable[str]) -> List[Path]:
    """
    Resolve paths and glob patterns to a de-duplicated list of files.

    Patterns that match nothing are logged and skipped; plain paths are kept
    as given so a missing file is reported by the conversion itself.
    """
    paths: List[Path] = []
    seen = set()
    for pattern in patterns:
        if glob.has_magic(pattern):
            matches = sorted(glob.glob(pattern, recursive=True))
            if not matches:
                logger.warning(f"No files match '{pattern}'")
        else:
            matches = [pattern]
        for match in matches:
            path = Path(match)
            if path not in seen:
                seen.add(path)
                paths.append(path)
    return paths


def convert_files(
    paths: Sequence[Union[str, Path]],
    config: Optional[ConvertConfig] = None,
    show_progress: bool = True
) -> BatchResult:
    """
    Convert a batch of files.

    A failing file is logged and recorded; the remaining files are still
    converted.

    Args:
        paths: Input files
        config: Conversion settings
        show_progress: Show a tqdm progress bar

    Returns:
        BatchResult
    """
    config = config or ConvertConfig()
    converted: Dict[Path, List[Path]] = {}
    failed: Dict[Path, str] = {}

    for path in tqdm([Path(p) for p in paths], desc='Converting', disable=not show_progress):
        try:
            converted[path] = convert_file(path, config)
        except Exception as e:
            logger.error(f"Failed to convert {path}: {type(e).__name__}: {e}")
            failed[path] = f"{type(e).__name__}: {e}"

    logger.info(f"Converted {len(converted)} file(s), {len(failed)} failed")
    return BatchResult(converted=converted, failed=failed)
