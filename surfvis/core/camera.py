"""
Camera: viewpoint pose, perspective projection and frustum planes
"""

import math
from dataclasses import dataclass
from typing import Optional, Sequence, Union
import torch

from .errors import InvalidConfigurationError


@dataclass
class Camera:
    """
    Perspective viewpoint.

    Right-handed, the camera looks down its local -Z axis with +Y up.

    Args:
        position: (3,) world position
        rotation: [3, 3] camera-to-world rotation (columns: right, up, back)
        fov_y: vertical field of view in degrees
        aspect: width / height
        near: near clip distance
        far: far clip distance
        entity_id: scene entity of the viewpoint's own collider (None = no collider)
    """
    position: torch.Tensor
    rotation: Optional[torch.Tensor] = None
    fov_y: float = 60.0
    aspect: float = 1.0
    near: float = 0.1
    far: float = 1000.0
    entity_id: Optional[int] = None

    def __post_init__(self):
        self.position = torch.as_tensor(self.position, dtype=torch.float32)
        if self.position.shape != (3,):
            raise InvalidConfigurationError(
                f"camera position must be (3,), got {tuple(self.position.shape)}"
            )
        if self.rotation is None:
            self.rotation = torch.eye(3, dtype=torch.float32, device=self.position.device)
        else:
            self.rotation = torch.as_tensor(
                self.rotation, dtype=torch.float32
            ).to(self.position.device)
        if self.rotation.shape != (3, 3):
            raise InvalidConfigurationError(
                f"camera rotation must be [3, 3], got {tuple(self.rotation.shape)}"
            )
        if not 0.0 < self.fov_y < 180.0:
            raise InvalidConfigurationError(f"fov_y must be in (0, 180), got {self.fov_y}")
        if self.aspect <= 0:
            raise InvalidConfigurationError(f"aspect must be positive, got {self.aspect}")
        if not 0.0 < self.near < self.far:
            raise InvalidConfigurationError(
                f"clip distances must satisfy 0 < near < far, got near={self.near} far={self.far}"
            )

    @classmethod
    def look_at(
        cls,
        position: Sequence[float],
        target: Sequence[float],
        up: Sequence[float] = (0.0, 1.0, 0.0),
        **kwargs
    ) -> "Camera":
        """
        Create a camera at `position` looking at `target`.

        Args:
            position: (3,) eye position
            target: (3,) point to look at
            up: (3,) approximate up direction
            **kwargs: fov_y, aspect, near, far, entity_id

        Returns:
            camera: Camera
        """
        eye = torch.as_tensor(position, dtype=torch.float32)
        forward = torch.as_tensor(target, dtype=torch.float32) - eye
        if forward.norm() < 1e-8:
            raise InvalidConfigurationError("look_at target coincides with camera position")
        forward = forward / forward.norm()

        up = torch.as_tensor(up, dtype=torch.float32)
        right = torch.linalg.cross(forward, up)
        if right.norm() < 1e-6:
            # up parallel to the view direction, pick any perpendicular axis
            fallback = torch.tensor([1.0, 0.0, 0.0]) if abs(forward[0]) < 0.9 else torch.tensor([0.0, 0.0, 1.0])
            right = torch.linalg.cross(forward, fallback)
        right = right / right.norm()
        true_up = torch.linalg.cross(right, forward)

        rotation = torch.stack([right, true_up, -forward], dim=1)
        return cls(position=eye, rotation=rotation, **kwargs)

    @property
    def device(self) -> torch.device:
        return self.position.device

    def to(self, device: Union[str, torch.device]) -> "Camera":
        """Copy of this camera on another device"""
        return Camera(
            position=self.position.to(device),
            rotation=self.rotation.to(device),
            fov_y=self.fov_y,
            aspect=self.aspect,
            near=self.near,
            far=self.far,
            entity_id=self.entity_id,
        )

    # ==================== Matrices ====================

    def view_matrix(self) -> torch.Tensor:
        """
        World-to-camera matrix.

        Returns:
            view: [4, 4]
        """
        view = torch.eye(4, dtype=torch.float32, device=self.device)
        rot_t = self.rotation.T
        view[:3, :3] = rot_t
        view[:3, 3] = -rot_t @ self.position
        return view

    def projection_matrix(self) -> torch.Tensor:
        """
        OpenGL-style perspective projection.

        Returns:
            projection: [4, 4]
        """
        f = 1.0 / math.tan(math.radians(self.fov_y) / 2.0)
        n, fa = self.near, self.far

        projection = torch.zeros(4, 4, dtype=torch.float32, device=self.device)
        projection[0, 0] = f / self.aspect
        projection[1, 1] = f
        projection[2, 2] = (fa + n) / (n - fa)
        projection[2, 3] = 2.0 * fa * n / (n - fa)
        projection[3, 2] = -1.0
        return projection

    def frustum_planes(self) -> torch.Tensor:
        """
        Six frustum planes extracted from projection @ view (Gribb/Hartmann).

        Order: left, right, bottom, top, near, far. A point p is inside a
        plane (a, b, c, d) when a*x + b*y + c*z + d >= 0.

        Returns:
            planes: [6, 4] with unit-length normals
        """
        m = self.projection_matrix() @ self.view_matrix()
        planes = torch.stack([
            m[3] + m[0],
            m[3] - m[0],
            m[3] + m[1],
            m[3] - m[1],
            m[3] + m[2],
            m[3] - m[2],
        ])
        norms = planes[:, :3].norm(dim=1, keepdim=True)
        return planes / norms


# ==================== Frustum Tests ====================

def planes_intersect_aabb(
    planes: torch.Tensor,
    aabb_min: torch.Tensor,
    aabb_max: torch.Tensor
) -> torch.Tensor:
    """
    Conservative planes-vs-AABB test.

    A box is rejected only when it lies entirely on the outer side of at
    least one plane (positive-vertex test).

    Args:
        planes: [P, 4] inward-facing planes
        aabb_min: [N, 3] or [3]
        aabb_max: [N, 3] or [3]

    Returns:
        inside: [N] bool (or scalar bool for a single box)
    """
    single = aabb_min.dim() == 1
    if single:
        aabb_min = aabb_min.unsqueeze(0)
        aabb_max = aabb_max.unsqueeze(0)

    normals = planes[:, :3]                                     # [P, 3]
    offsets = planes[:, 3]                                      # [P]

    positive = normals.unsqueeze(0) >= 0                        # [1, P, 3]
    p_vertex = torch.where(
        positive,
        aabb_max.unsqueeze(1),
        aabb_min.unsqueeze(1)
    )                                                           # [N, P, 3]
    dist = (p_vertex * normals.unsqueeze(0)).sum(dim=2) + offsets  # [N, P]
    inside = (dist >= 0).all(dim=1)

    return inside[0] if single else inside
