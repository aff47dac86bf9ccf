"""
Frustum/backface classifier

Tags every snapshot triangle as eligible for sampling or excluded, without
removing anything, so the tags stay index-aligned with the area weights.
"""

import torch

from ..core.camera import planes_intersect_aabb
from ..core.data_structures import GeometrySnapshot, ClassifiedTriangles


def classify_triangles(
    snapshot: GeometrySnapshot,
    planes: torch.Tensor,
    camera_position: torch.Tensor,
    bounds_size: float = 1.0
) -> ClassifiedTriangles:
    """
    Classify triangles against the view frustum and by facing.

    A triangle is excluded when a cube of edge `bounds_size` centred on its
    centroid lies outside the frustum, or when its normal does not face the
    camera (dot(normal, normalize(v0 - camera)) >= 0). Zero-area triangles
    have a zero normal and are always excluded.

    Args:
        snapshot: GeometrySnapshot
        planes: [6, 4] frustum planes
        camera_position: (3,) viewpoint position
        bounds_size: Edge length of the per-triangle test box

    Returns:
        classified: ClassifiedTriangles with the same length as the snapshot
    """
    triangles = snapshot.triangles
    device = triangles.device
    planes = planes.to(device)
    camera_position = camera_position.to(device)

    if snapshot.num_triangles == 0:
        return ClassifiedTriangles(
            triangles=triangles,
            eligible=torch.zeros(0, dtype=torch.bool, device=device),
            areas=snapshot.areas
        )

    v0, v1, v2 = triangles[:, 0], triangles[:, 1], triangles[:, 2]

    # Frustum test on centroid boxes
    centroids = (v0 + v1 + v2) / 3
    half = bounds_size / 2
    in_frustum = planes_intersect_aabb(planes, centroids - half, centroids + half)

    # Backface test
    normals = torch.linalg.cross(v1 - v0, v2 - v0)
    normals = normals / normals.norm(dim=1, keepdim=True).clamp_min(1e-12)
    to_triangle = v0 - camera_position
    to_triangle = to_triangle / to_triangle.norm(dim=1, keepdim=True).clamp_min(1e-12)
    front_facing = (normals * to_triangle).sum(dim=1) < 0

    return ClassifiedTriangles(
        triangles=triangles,
        eligible=in_frustum & front_facing,
        areas=snapshot.areas
    )
