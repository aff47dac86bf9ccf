"""
Barycentric point sampler
"""

from typing import Optional
import torch

from ..core.data_structures import SampleSet
from .triangle_sampler import uniform


def sample_points(
    triangles: torch.Tensor,
    face_ids: torch.Tensor,
    generator: Optional[torch.Generator] = None
) -> SampleSet:
    """
    Draw one uniformly distributed point inside each selected triangle.

    r1, r2 ~ U[0, 1); pairs with r1 + r2 > 1 are reflected back into the
    triangle, then p = v0 + r1 (v1 - v0) + r2 (v2 - v0).

    Args:
        triangles: [F, 3, 3] all triangles
        face_ids: [K] index of the triangle to sample for each point
        generator: Random source

    Returns:
        samples: SampleSet with K points
    """
    device = triangles.device
    K = face_ids.shape[0]

    chosen = triangles[face_ids]                                # [K, 3, 3]
    v0, v1, v2 = chosen[:, 0], chosen[:, 1], chosen[:, 2]

    r = uniform((K, 2), generator, device)
    flip = r.sum(dim=1) > 1
    r[flip] = 1 - r[flip]
    r1, r2 = r[:, 0:1], r[:, 1:2]

    points = v0 + r1 * (v1 - v0) + r2 * (v2 - v0)
    return SampleSet(points=points, face_ids=face_ids)


def barycentric_coordinates(points: torch.Tensor, triangles: torch.Tensor) -> torch.Tensor:
    """
    Barycentric coordinates (u, v, w) of points w.r.t. their triangles.

    Args:
        points: [K, 3]
        triangles: [K, 3, 3]

    Returns:
        uvw: [K, 3] with p = u v0 + v v1 + w v2 and u + v + w = 1
    """
    v0, v1, v2 = triangles[:, 0], triangles[:, 1], triangles[:, 2]

    v0v1 = v1 - v0
    v0v2 = v2 - v0
    v0p = points - v0

    d00 = (v0v1 * v0v1).sum(dim=1)
    d01 = (v0v1 * v0v2).sum(dim=1)
    d11 = (v0v2 * v0v2).sum(dim=1)
    d20 = (v0p * v0v1).sum(dim=1)
    d21 = (v0p * v0v2).sum(dim=1)

    denom = d00 * d11 - d01 * d01
    v = (d11 * d20 - d01 * d21) / (denom + 1e-12)
    w = (d00 * d21 - d01 * d20) / (denom + 1e-12)
    u = 1.0 - v - w

    return torch.stack([u, v, w], dim=1)
