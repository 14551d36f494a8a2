"""
Linear blend skinning driven by evaluated poses.

Each bone moves the vertices it influences rigidly: a vertex is expressed
relative to the bone's bind position, rotated by the bone's accumulated
orientation and moved to the bone's posed position. The results are blended
with the vertex weights:

    v' = sum_i w_i * (P_i + R(q_i) @ (v - B_i))

Orientations are relative to the bind pose, so the bind pose returns the rest
mesh unchanged.
"""

from typing import Union
import numpy as np
import torch
import torch.nn as nn
import torch.nn.functional as F

from .pose import Pose

ArrayLike = Union[np.ndarray, torch.Tensor]


def _quaternion_to_matrix(q: torch.Tensor) -> torch.Tensor:
    """
    Batched rotation matrices of [x, y, z, w] quaternions.

    Args:
        q: Quaternions of shape (..., 4)

    Returns:
        Rotation matrices of shape (..., 3, 3)
    """
    q = F.normalize(q, p=2, dim=-1, eps=1e-12)
    x, y, z, w = q.unbind(dim=-1)

    R = torch.stack([
        torch.stack([1 - 2 * (y * y + z * z), 2 * (x * y - z * w), 2 * (x * z + y * w)], dim=-1),
        torch.stack([2 * (x * y + z * w), 1 - 2 * (x * x + z * z), 2 * (y * z - x * w)], dim=-1),
        torch.stack([2 * (x * z - y * w), 2 * (y * z + x * w), 1 - 2 * (x * x + y * y)], dim=-1),
    ], dim=-2)

    return R


class LinearBlendSkinning(nn.Module):
    """
    Linear Blend Skinning (LBS) for mesh deformation.

    Transforms rest vertices from per-bone positions and orientations of a Pose.
    """

    def __init__(
        self,
        rest_vertices: ArrayLike,
        bind_positions: ArrayLike,
        bone_indices: ArrayLike,
        bone_weights: ArrayLike
    ):
        """
        Args:
            rest_vertices: Rest pose vertices (V, 3)
            bind_positions: Bind pose bone positions (J, 3)
            bone_indices: Bone indices per vertex (V, max_influences)
            bone_weights: Skinning weights (V, max_influences)
        """
        super().__init__()

        self.register_buffer('rest_vertices', torch.as_tensor(rest_vertices, dtype=torch.float64))
        self.register_buffer('bind_positions', torch.as_tensor(bind_positions, dtype=torch.float64))
        self.register_buffer('bone_indices', torch.as_tensor(bone_indices).long())
        self.register_buffer('bone_weights', torch.as_tensor(bone_weights, dtype=torch.float64))

        if self.bone_indices.shape != self.bone_weights.shape:
            raise ValueError(
                f"bone_indices {tuple(self.bone_indices.shape)} and "
                f"bone_weights {tuple(self.bone_weights.shape)} must match"
            )
        if self.bone_indices.shape[0] != self.rest_vertices.shape[0]:
            raise ValueError(
                f"{self.bone_indices.shape[0]} weight rows for {self.rest_vertices.shape[0]} vertices"
            )

    @property
    def num_vertices(self) -> int:
        return self.rest_vertices.shape[0]

    def forward(self, positions: ArrayLike, orientations: ArrayLike) -> torch.Tensor:
        """
        Deform vertices using current pose.

        Args:
            positions: Posed bone positions (J, 3)
            orientations: Accumulated bone orientations (J, 4) as [x, y, z, w]

        Returns:
            Deformed vertices (V, 3)
        """
        device = self.rest_vertices.device
        positions = torch.as_tensor(positions, dtype=torch.float64, device=device)
        orientations = torch.as_tensor(orientations, dtype=torch.float64, device=device)

        rotations = _quaternion_to_matrix(orientations)  # (J, 3, 3)

        deformed = torch.zeros_like(self.rest_vertices)
        max_influences = self.bone_weights.shape[1]

        for b in range(max_influences):
            bone_idx = self.bone_indices[:, b]
            weight = self.bone_weights[:, b:b+1]

            local = self.rest_vertices - self.bind_positions[bone_idx]
            transformed = torch.einsum('vij,vj->vi', rotations[bone_idx], local) + positions[bone_idx]

            deformed = deformed + weight * transformed

        return deformed

    def deform(self, pose: Pose) -> np.ndarray:
        """Deform with a Pose and return a numpy (V, 3) array."""
        with torch.no_grad():
            return self.forward(pose.positions, pose.orientations).cpu().numpy()
