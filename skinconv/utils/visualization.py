"""
Visualization utilities for skinconv.

Plots skeletons in their bind pose or in evaluated poses, for inspecting
converted assets.
"""

from typing import Any, Optional, Sequence, Tuple
from dataclasses import dataclass
from pathlib import Path
import logging
import numpy as np

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration and Style
# =============================================================================

@dataclass
class PlotStyle:
    """Plotting style configuration."""
    figsize: Tuple[int, int] = (8, 8)
    dpi: int = 100
    joint_color: str = 'red'
    bone_color: str = '#1f77b4'
    joint_size: float = 40
    bone_width: float = 2
    font_size: int = 10
    show_labels: bool = True


DEFAULT_STYLE = PlotStyle()


def _ensure_matplotlib():
    """Import pyplot and register the 3D projection."""
    import matplotlib.pyplot as plt
    from mpl_toolkits.mplot3d import Axes3D  # noqa: F401
    return plt


def _bone_segments(skeleton, positions: np.ndarray):
    """(parent_position, child_position) for every parent/child joint pair."""
    for joint in skeleton.walk():
        for child in joint.children:
            yield positions[joint.index], positions[child.index]


def _set_equal_aspect(ax, positions: np.ndarray):
    if len(positions) == 0:
        return
    center = (positions.max(axis=0) + positions.min(axis=0)) / 2
    radius = max(float(np.ptp(positions, axis=0).max()) / 2, 1e-3)
    ax.set_xlim(center[0] - radius, center[0] + radius)
    ax.set_ylim(center[1] - radius, center[1] + radius)
    ax.set_zlim(center[2] - radius, center[2] + radius)


# =============================================================================
# Skeleton Plots
# =============================================================================

def plot_skeleton(
    skeleton,
    pose=None,
    ax: Any = None,
    title: str = 'Skeleton',
    style: PlotStyle = None,
    save_path: Optional[str] = None,
):
    """
    Plot a skeleton's joints and bones in 3D.

    Args:
        skeleton: Skeleton to draw
        pose: Optional Pose; the bind pose is drawn when omitted
        ax: Existing 3D matplotlib axis
        title: Plot title
        style: PlotStyle configuration
        save_path: Save the figure here when given

    Returns:
        Tuple of (figure, axis)
    """
    plt = _ensure_matplotlib()
    style = style or DEFAULT_STYLE

    if ax is None:
        fig = plt.figure(figsize=style.figsize, dpi=style.dpi)
        ax = fig.add_subplot(111, projection='3d')
    else:
        fig = ax.get_figure()

    positions = skeleton.bind_positions() if pose is None else np.asarray(pose.positions)
    joint_positions = np.array([positions[joint.index] for joint in skeleton.walk()]).reshape(-1, 3)

    if len(joint_positions):
        ax.scatter(
            joint_positions[:, 0], joint_positions[:, 1], joint_positions[:, 2],
            s=style.joint_size, c=style.joint_color, marker='o'
        )
    if style.show_labels:
        for joint in skeleton.walk():
            pos = positions[joint.index]
            ax.text(pos[0], pos[1], pos[2], f'  {joint.id}', fontsize=style.font_size - 2)

    for parent_pos, child_pos in _bone_segments(skeleton, positions):
        ax.plot(
            [parent_pos[0], child_pos[0]],
            [parent_pos[1], child_pos[1]],
            [parent_pos[2], child_pos[2]],
            c=style.bone_color, linewidth=style.bone_width
        )

    _set_equal_aspect(ax, joint_positions)
    ax.set_xlabel('X', fontsize=style.font_size)
    ax.set_ylabel('Y', fontsize=style.font_size)
    ax.set_zlabel('Z', fontsize=style.font_size)
    ax.set_title(title, fontsize=style.font_size + 2)

    if save_path:
        Path(save_path).parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(save_path, bbox_inches='tight')
        logger.info(f"Saved skeleton plot: {save_path}")

    return fig, ax


def plot_pose_sequence(
    skeleton,
    poses: Sequence,
    title: str = 'Skeleton Animation',
    style: PlotStyle = None,
    trail_alpha: float = 0.3,
    save_path: Optional[str] = None,
):
    """
    Overlay several poses, later frames drawn more opaque.

    Args:
        skeleton: Skeleton the poses belong to
        poses: Sequence of Pose
        title: Plot title
        style: PlotStyle configuration
        trail_alpha: Alpha of the first pose
        save_path: Save the figure here when given

    Returns:
        Tuple of (figure, axis)
    """
    plt = _ensure_matplotlib()
    style = style or DEFAULT_STYLE

    fig = plt.figure(figsize=style.figsize, dpi=style.dpi)
    ax = fig.add_subplot(111, projection='3d')

    n_frames = len(poses)
    cmap = plt.cm.viridis
    all_positions = []

    for i, pose in enumerate(poses):
        alpha = trail_alpha + (1 - trail_alpha) * (i / max(1, n_frames - 1))
        color = cmap(i / max(1, n_frames - 1))
        positions = np.asarray(pose.positions)
        all_positions.append(positions)

        for parent_pos, child_pos in _bone_segments(skeleton, positions):
            ax.plot(
                [parent_pos[0], child_pos[0]],
                [parent_pos[1], child_pos[1]],
                [parent_pos[2], child_pos[2]],
                c=color, linewidth=style.bone_width, alpha=alpha
            )

    if all_positions:
        _set_equal_aspect(ax, np.concatenate(all_positions))
    ax.set_xlabel('X', fontsize=style.font_size)
    ax.set_ylabel('Y', fontsize=style.font_size)
    ax.set_zlabel('Z', fontsize=style.font_size)
    ax.set_title(title, fontsize=style.font_size + 2)

    if save_path:
        Path(save_path).parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(save_path, bbox_inches='tight')
        logger.info(f"Saved animation plot: {save_path}")

    return fig, ax
