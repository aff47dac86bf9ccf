"""
GeometrySnapshot builder: world-space triangles and their areas
"""

from typing import Optional, Tuple, Union
import torch

from ..core.data_structures import GeometrySnapshot
from ..core.device_utils import resolve_device, as_tensor
from ..core.errors import InvalidConfigurationError
from ..core.transforms import transform_points, compute_bounds


def validate_mesh(
    vertices,
    faces,
    device: Optional[Union[str, torch.device]] = None
) -> Tuple[torch.Tensor, torch.Tensor]:
    """
    Convert and check mesh inputs.

    Args:
        vertices: [V, 3] array-like
        faces: [F, 3] array-like of vertex indices
        device: Target device (None = inferred from vertices)

    Returns:
        vertices: [V, 3] float32
        faces: [F, 3] int64

    Raises:
        InvalidConfigurationError: missing input, bad shape or index out of range
    """
    device = resolve_device(
        vertices if isinstance(vertices, torch.Tensor) else None,
        device=device
    )
    vertices = as_tensor(vertices, "vertices", torch.float32, device)
    faces = as_tensor(faces, "faces", torch.int64, device)

    if vertices.numel() == 0:
        vertices = vertices.reshape(0, 3)
    if faces.numel() == 0:
        faces = faces.reshape(0, 3)

    if vertices.dim() != 2 or vertices.shape[1] != 3:
        raise InvalidConfigurationError(f"vertices must be [V, 3], got {tuple(vertices.shape)}")
    if faces.dim() != 2 or faces.shape[1] != 3:
        raise InvalidConfigurationError(f"faces must be [F, 3], got {tuple(faces.shape)}")
    if faces.numel() > 0 and (faces.min() < 0 or faces.max() >= vertices.shape[0]):
        raise InvalidConfigurationError(
            f"face index out of range for {vertices.shape[0]} vertices"
        )

    return vertices, faces


def triangle_areas(triangles: torch.Tensor) -> torch.Tensor:
    """
    Surface area per triangle, |cross(v1 - v0, v2 - v0)| / 2.

    Args:
        triangles: [F, 3, 3]

    Returns:
        areas: [F]
    """
    v0, v1, v2 = triangles[:, 0], triangles[:, 1], triangles[:, 2]
    return torch.linalg.cross(v1 - v0, v2 - v0).norm(dim=1) / 2


def build_snapshot(
    vertices,
    faces,
    transform: Optional[torch.Tensor] = None,
    device: Optional[Union[str, torch.device]] = None
) -> GeometrySnapshot:
    """
    Extract world-space triangles and per-triangle areas from a mesh.

    Args:
        vertices: [V, 3] local-space vertex positions
        faces: [F, 3] triangle vertex indices
        transform: [4, 4] object-to-world matrix (None = identity)
        device: Compute device

    Returns:
        snapshot: GeometrySnapshot (one triangle per face, mesh face order)
    """
    vertices, faces = validate_mesh(vertices, faces, device)

    if transform is not None:
        transform = as_tensor(transform, "transform", torch.float32, vertices.device)
        if transform.shape != (4, 4):
            raise InvalidConfigurationError(
                f"transform must be [4, 4], got {tuple(transform.shape)}"
            )

    world = transform_points(vertices, transform)
    triangles = world[faces]                                    # [F, 3, 3]

    if faces.shape[0] > 0:
        # Bounds of the geometry actually rendered (referenced vertices only)
        bounds = compute_bounds(triangles.reshape(-1, 3))
    else:
        bounds = torch.zeros(2, 3, device=vertices.device)

    return GeometrySnapshot(
        triangles=triangles,
        areas=triangle_areas(triangles),
        bounds=bounds
    )
