"""
skinconv: skinned asset conversion and skeletal pose evaluation

Converts skinned COLLADA characters and Wavefront OBJ meshes into JSON
snapshots a renderer can consume directly, and evaluates skeletal poses from
the exported bind skeleton and animation tracks.

Key Features:
- Bind skeleton construction from the scene's joint nodes
- Vertex weight binding (4 strongest influences, renormalized)
- Animation channel to joint matching (longest joint id wins)
- Per-frame pose evaluation with an optional position cross-check
- Linear blend skinning in PyTorch
- Batch conversion CLI

Conventions:
- Matrices are (4, 4) float64 numpy arrays acting on column vectors;
  world = parent_world @ local
- Quaternions are [x, y, z, w]
- JSON matrices are column-major

Example:
    >>> from skinconv.data import load_collada
    >>> from skinconv.converter import build_rig
    >>> from skinconv.skeleton import evaluate_pose
    >>> asset = load_collada('character.dae')
    >>> rig = build_rig(asset)
    >>> pose = evaluate_pose(rig.skeleton, rig.tracks, frame=0)
    >>> pose.positions.shape  # (num_bones, 3)
"""

__version__ = "0.1.0"
__author__ = "skinconv Contributors"

from . import core
from . import utils
from . import data
from . import skeleton
from . import converter

__all__ = [
    "core",
    "utils",
    "data",
    "skeleton",
    "converter",
]
