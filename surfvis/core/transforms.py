"""
Rigid/affine transform helpers and axis-aligned bounds
"""

from typing import Optional, Sequence, Union
import torch

from .errors import InvalidConfigurationError


# Corner order: min, max, then the six mixed corners
AABB_CORNER_SELECT = torch.tensor([
    [0, 0, 0],
    [1, 1, 1],
    [0, 0, 1],
    [0, 1, 0],
    [1, 0, 0],
    [0, 1, 1],
    [1, 0, 1],
    [1, 1, 0],
], dtype=torch.bool)


def trs_matrix(
    translation: Optional[Sequence[float]] = None,
    rotation: Optional[Union[torch.Tensor, Sequence[Sequence[float]]]] = None,
    scale: Optional[Union[float, Sequence[float]]] = None,
    device: Union[str, torch.device] = 'cpu'
) -> torch.Tensor:
    """
    Build a 4x4 object-to-world matrix M = T @ R @ S.

    Args:
        translation: (3,) translation (default zero)
        rotation: [3, 3] rotation matrix (default identity)
        scale: scalar or (3,) per-axis scale (default 1)
        device: Device of the returned matrix

    Returns:
        matrix: [4, 4] float32
    """
    matrix = torch.eye(4, dtype=torch.float32, device=device)

    linear = torch.eye(3, dtype=torch.float32, device=device)
    if scale is not None:
        s = torch.as_tensor(scale, dtype=torch.float32, device=device)
        linear = linear * s.expand(3)
    if rotation is not None:
        rot = torch.as_tensor(rotation, dtype=torch.float32, device=device)
        if rot.shape != (3, 3):
            raise InvalidConfigurationError(f"rotation must be [3, 3], got {tuple(rot.shape)}")
        linear = rot @ linear

    matrix[:3, :3] = linear
    if translation is not None:
        matrix[:3, 3] = torch.as_tensor(translation, dtype=torch.float32, device=device)

    return matrix


def transform_points(points: torch.Tensor, matrix: Optional[torch.Tensor]) -> torch.Tensor:
    """
    Apply a 4x4 affine transform to points.

    Args:
        points: [N, 3]
        matrix: [4, 4] (None = identity)

    Returns:
        transformed: [N, 3]
    """
    if matrix is None:
        return points
    matrix = matrix.to(device=points.device, dtype=points.dtype)
    return points @ matrix[:3, :3].T + matrix[:3, 3]


def compute_bounds(points: torch.Tensor) -> torch.Tensor:
    """
    Axis-aligned bounds of a point set.

    Returns:
        bounds: [2, 3] [[min_xyz], [max_xyz]]
    """
    return torch.stack([
        points.min(dim=0)[0],
        points.max(dim=0)[0]
    ])


def aabb_corners(bounds: torch.Tensor) -> torch.Tensor:
    """
    Enumerate the 8 corners of an AABB.

    Args:
        bounds: [2, 3]

    Returns:
        corners: [8, 3]
    """
    select = AABB_CORNER_SELECT.to(bounds.device)
    return torch.where(select, bounds[1].expand(8, 3), bounds[0].expand(8, 3))
