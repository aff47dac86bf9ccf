"""
Data structures for SurfVis
"""

from dataclasses import dataclass
from typing import Optional
import torch


@dataclass
class GeometrySnapshot:
    """World-space triangles of one object, rebuilt every evaluation cycle"""
    triangles: torch.Tensor     # [F, 3, 3] float32 (v0, v1, v2) in mesh face order
    areas: torch.Tensor         # [F] float32 surface area per triangle (unculled)
    bounds: torch.Tensor        # [2, 3] world AABB [[min_xyz], [max_xyz]]

    @property
    def num_triangles(self) -> int:
        return self.triangles.shape[0]

    @property
    def total_area(self) -> float:
        return float(self.areas.sum().item()) if self.num_triangles > 0 else 0.0


@dataclass
class ClassifiedTriangles:
    """
    Snapshot triangles tagged per slot as eligible or excluded.

    Slot i is Eligible(triangles[i]) when eligible[i] is True and Excluded
    otherwise. Nothing is removed, so triangles, eligible and areas stay
    index-aligned.
    """
    triangles: torch.Tensor     # [F, 3, 3] float32
    eligible: torch.Tensor      # [F] bool
    areas: torch.Tensor         # [F] float32 (all triangles, eligible or not)

    @property
    def num_triangles(self) -> int:
        return self.triangles.shape[0]

    @property
    def num_eligible(self) -> int:
        return int(self.eligible.sum().item())

    def triangle(self, index: int) -> Optional[torch.Tensor]:
        """Get triangle [3, 3] at index, or None for an excluded slot"""
        if not bool(self.eligible[index]):
            return None
        return self.triangles[index]


@dataclass
class SampleSet:
    """Uniformly sampled surface points"""
    points: torch.Tensor        # [K, 3] float32
    face_ids: torch.Tensor      # [K] int64 source triangle of each point

    def __len__(self) -> int:
        return self.points.shape[0]


@dataclass
class RayHits:
    """All intersections along a batch of rays (one row per hit)"""
    ray_ids: torch.Tensor       # [H] int64 index of the ray that produced the hit
    entity_ids: torch.Tensor    # [H] int64 entity that was hit
    t: torch.Tensor             # [H] float32 distance along the ray
    face_ids: Optional[torch.Tensor] = None  # [H] int64 face index inside the scene

    @property
    def num_hits(self) -> int:
        return self.ray_ids.shape[0]


@dataclass
class DebugRays:
    """Rays for debug drawing (origin + direction, direction not normalized)"""
    origins: torch.Tensor       # [K, 3]
    directions: torch.Tensor    # [K, 3]


@dataclass
class VisibilityResult:
    """Visibility estimation result"""
    visibility: float                       # fraction of unoccluded samples [0, 1]
    stage: str                              # pipeline step that produced the value
    num_samples: int = 0                    # requested samples actually drawn
    occluded_count: int = 0
    failed_count: int = 0                   # samples dropped after oracle failures
    samples: Optional[SampleSet] = None
    occluded: Optional[torch.Tensor] = None  # [K] bool
    debug_rays: Optional[DebugRays] = None

    @property
    def percentage(self) -> float:
        return self.visibility * 100.0
