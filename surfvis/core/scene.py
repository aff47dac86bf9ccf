"""
Scene: multi-entity triangle soup answering all-hits ray queries

Reference implementation of the intersection oracle used by the
occlusion raycaster. Brute force (no spatial index), chunked over
rays x faces to bound memory.
"""

import logging
from typing import Dict, List, Optional, Protocol, Tuple, Union
import torch

from .data_structures import RayHits
from .device_utils import resolve_device, as_tensor
from .errors import InvalidConfigurationError
from .transforms import transform_points, compute_bounds

logger = logging.getLogger(__name__)


class IntersectionOracle(Protocol):
    """
    Anything that can report every entity a batch of rays passes through.

    `rays_d` is normalized; a hit counts when 0 < t <= max_t.
    """

    def intersect_rays_all(
        self,
        rays_o: torch.Tensor,
        rays_d: torch.Tensor,
        max_t: torch.Tensor
    ) -> RayHits:
        ...


class Scene:
    """
    Collection of triangle meshes, each tagged with an entity id.

    Meshes are stored in local space together with their object-to-world
    transform; world-space geometry is rebuilt lazily after any change.

    Args:
        device: Compute device (default 'cuda' if available, else 'cpu')
        ray_chunk: Rays per intersection chunk
        face_chunk: Faces per intersection chunk
        min_t: Smallest accepted hit distance
    """

    def __init__(
        self,
        device: Optional[Union[str, torch.device]] = None,
        ray_chunk: int = 1024,
        face_chunk: int = 2048,
        min_t: float = 1e-6
    ):
        self.device = resolve_device(device=device)
        self.ray_chunk = ray_chunk
        self.face_chunk = face_chunk
        self.min_t = min_t

        self._meshes: Dict[int, Tuple[torch.Tensor, torch.Tensor, Optional[torch.Tensor]]] = {}
        self._next_id = 0

        # World-space cache
        self._tri_verts = None      # [F, 3, 3]
        self._face_entity = None    # [F] int64
        self._dirty = True

    # ==================== Entities ====================

    def add_mesh(
        self,
        vertices,
        faces,
        transform: Optional[torch.Tensor] = None,
        entity_id: Optional[int] = None
    ) -> int:
        """
        Add a mesh to the scene.

        Args:
            vertices: [V, 3] local-space vertices
            faces: [F, 3] triangle indices
            transform: [4, 4] object-to-world matrix (None = identity)
            entity_id: Explicit id (None = next free id)

        Returns:
            entity_id: int
        """
        vertices = as_tensor(vertices, "vertices", torch.float32, self.device)
        faces = as_tensor(faces, "faces", torch.int64, self.device)
        if faces.numel() == 0:
            faces = faces.reshape(0, 3)
        if vertices.dim() != 2 or vertices.shape[1] != 3:
            raise InvalidConfigurationError(f"vertices must be [V, 3], got {tuple(vertices.shape)}")
        if faces.dim() != 2 or faces.shape[1] != 3:
            raise InvalidConfigurationError(f"faces must be [F, 3], got {tuple(faces.shape)}")
        if faces.numel() > 0 and (faces.min() < 0 or faces.max() >= vertices.shape[0]):
            raise InvalidConfigurationError("face index out of range")

        if entity_id is None:
            entity_id = self._next_id
        if entity_id in self._meshes:
            raise InvalidConfigurationError(f"entity {entity_id} already in scene")
        self._next_id = max(self._next_id, entity_id + 1)

        if transform is not None:
            transform = as_tensor(transform, "transform", torch.float32, self.device)

        self._meshes[entity_id] = (vertices, faces, transform)
        self._dirty = True
        return entity_id

    def set_transform(self, entity_id: int, transform: Optional[torch.Tensor]):
        """Replace the object-to-world transform of an entity"""
        vertices, faces, _ = self._get(entity_id)
        if transform is not None:
            transform = as_tensor(transform, "transform", torch.float32, self.device)
        self._meshes[entity_id] = (vertices, faces, transform)
        self._dirty = True

    def remove(self, entity_id: int):
        """Remove an entity"""
        self._get(entity_id)
        del self._meshes[entity_id]
        self._dirty = True

    def get_mesh(self, entity_id: int) -> Tuple[torch.Tensor, torch.Tensor, Optional[torch.Tensor]]:
        """
        Get the local-space mesh of an entity.

        Returns:
            vertices: [V, 3]
            faces: [F, 3]
            transform: [4, 4] or None
        """
        return self._get(entity_id)

    def get_bounds(self, entity_id: int) -> torch.Tensor:
        """
        World-space AABB of an entity.

        Returns:
            bounds: [2, 3]
        """
        vertices, _, transform = self._get(entity_id)
        return compute_bounds(transform_points(vertices, transform))

    @property
    def entity_ids(self) -> List[int]:
        return list(self._meshes.keys())

    @property
    def num_faces(self) -> int:
        self._rebuild()
        return self._tri_verts.shape[0]

    def _get(self, entity_id: int):
        if entity_id not in self._meshes:
            raise KeyError(f"unknown entity {entity_id}")
        return self._meshes[entity_id]

    def _rebuild(self):
        """Gather all entities into one world-space triangle soup."""
        if not self._dirty:
            return

        all_tris = []
        all_entities = []
        for entity_id, (vertices, faces, transform) in self._meshes.items():
            world = transform_points(vertices, transform)
            all_tris.append(world[faces])
            all_entities.append(
                torch.full((faces.shape[0],), entity_id, dtype=torch.int64, device=self.device)
            )

        if all_tris:
            self._tri_verts = torch.cat(all_tris)
            self._face_entity = torch.cat(all_entities)
        else:
            self._tri_verts = torch.zeros(0, 3, 3, device=self.device)
            self._face_entity = torch.zeros(0, dtype=torch.int64, device=self.device)
        self._dirty = False

    # ==================== Ray Intersection ====================

    def intersect_rays_all(
        self,
        rays_o: torch.Tensor,
        rays_d: torch.Tensor,
        max_t: Union[float, torch.Tensor] = 1e10
    ) -> RayHits:
        """
        All ray-mesh intersections (two-sided Moller-Trumbore).

        Args:
            rays_o: [N, 3] ray origins
            rays_d: [N, 3] ray directions (normalized)
            max_t: float or [N] maximum distance per ray

        Returns:
            hits: RayHits sorted by ray id, then by distance
        """
        self._rebuild()
        rays_o = rays_o.to(self.device).float()
        rays_d = rays_d.to(self.device).float()
        N = rays_o.shape[0]

        if not isinstance(max_t, torch.Tensor):
            max_t = torch.full((N,), float(max_t), device=self.device)
        max_t = max_t.to(self.device).float().expand(N)

        M = self._tri_verts.shape[0]
        if N == 0 or M == 0:
            empty = torch.zeros(0, dtype=torch.int64, device=self.device)
            return RayHits(ray_ids=empty, entity_ids=empty.clone(),
                           t=torch.zeros(0, device=self.device), face_ids=empty.clone())

        v0 = self._tri_verts[:, 0]
        edge1 = self._tri_verts[:, 1] - v0
        edge2 = self._tri_verts[:, 2] - v0

        all_rays = []
        all_faces = []
        all_t = []

        for r0 in range(0, N, self.ray_chunk):
            r1 = min(r0 + self.ray_chunk, N)
            o = rays_o[r0:r1, None, :]
            d = rays_d[r0:r1, None, :]
            limit = max_t[r0:r1, None]

            for f0 in range(0, M, self.face_chunk):
                f1 = min(f0 + self.face_chunk, M)
                e1 = edge1[None, f0:f1]
                e2 = edge2[None, f0:f1]

                h = torch.linalg.cross(d.expand(-1, f1 - f0, -1), e2.expand(r1 - r0, -1, -1))
                a = (e1 * h).sum(dim=2)
                valid = a.abs() > 1e-8
                f = torch.where(valid, 1.0 / a.masked_fill(~valid, 1.0), torch.zeros_like(a))

                s = o - v0[None, f0:f1]
                u = f * (s * h).sum(dim=2)
                valid &= (u >= 0) & (u <= 1)

                q = torch.linalg.cross(s, e1.expand(r1 - r0, -1, -1))
                v = f * (d * q).sum(dim=2)
                valid &= (v >= 0) & (u + v <= 1)

                t_hit = f * (e2 * q).sum(dim=2)
                valid &= (t_hit > self.min_t) & (t_hit <= limit)

                local_r, local_f = torch.where(valid)
                if local_r.numel() > 0:
                    all_rays.append(local_r + r0)
                    all_faces.append(local_f + f0)
                    all_t.append(t_hit[local_r, local_f])

        if not all_rays:
            empty = torch.zeros(0, dtype=torch.int64, device=self.device)
            return RayHits(ray_ids=empty, entity_ids=empty.clone(),
                           t=torch.zeros(0, device=self.device), face_ids=empty.clone())

        ray_ids = torch.cat(all_rays)
        face_ids = torch.cat(all_faces)
        t = torch.cat(all_t)

        # Sort by ray, then by distance
        order = torch.sort(t, stable=True)[1]
        order = order[torch.sort(ray_ids[order], stable=True)[1]]

        return RayHits(
            ray_ids=ray_ids[order],
            entity_ids=self._face_entity[face_ids[order]],
            t=t[order],
            face_ids=face_ids[order]
        )

    def intersect_segments_all(
        self,
        seg_start: torch.Tensor,
        seg_end: torch.Tensor
    ) -> RayHits:
        """
        All intersections along segments.

        Args:
            seg_start: [N, 3]
            seg_end: [N, 3]

        Returns:
            hits: RayHits with t measured from seg_start
        """
        rays_d = seg_end - seg_start
        seg_lengths = rays_d.norm(dim=1)
        rays_d = rays_d / (seg_lengths.unsqueeze(1) + 1e-8)
        return self.intersect_rays_all(seg_start, rays_d, max_t=seg_lengths)
