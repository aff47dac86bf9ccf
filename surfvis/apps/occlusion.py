"""
OcclusionRaycaster: line-of-sight tests from surface points to the viewpoint
"""

import logging
from typing import Optional, Tuple
import torch

from ..core.data_structures import RayHits, DebugRays
from ..core.errors import OracleQueryError
from ..core.scene import IntersectionOracle

logger = logging.getLogger(__name__)


class OcclusionRaycaster:
    """
    Casts segments from points toward a target and reports occlusion.

    A segment is occluded when the oracle reports any hit on an entity other
    than the sampled object itself and the viewpoint's own collider.

    Oracle errors are retried `max_retries` times. If a whole batch still
    fails, every ray is queried on its own; rays that keep failing are
    reported as failed (neither occluded nor clear).

    Args:
        oracle: IntersectionOracle
        self_id: Entity id of the sampled object
        viewpoint_id: Entity id of the viewpoint collider (None = none)
        max_retries: Extra attempts per failing query
    """

    def __init__(
        self,
        oracle: IntersectionOracle,
        self_id: Optional[int],
        viewpoint_id: Optional[int] = None,
        max_retries: int = 1
    ):
        self.oracle = oracle
        self.self_id = self_id
        self.viewpoint_id = viewpoint_id
        self.max_retries = max_retries
        self.num_queries = 0

    def _query(
        self,
        rays_o: torch.Tensor,
        rays_d: torch.Tensor,
        max_t: torch.Tensor
    ) -> RayHits:
        """One oracle call with retries."""
        last_error = None
        for attempt in range(self.max_retries + 1):
            self.num_queries += 1
            try:
                return self.oracle.intersect_rays_all(rays_o, rays_d, max_t)
            except Exception as e:
                last_error = e
                logger.warning(
                    "Intersection query failed (attempt %d/%d, %d rays): %s",
                    attempt + 1, self.max_retries + 1, rays_o.shape[0], e
                )
        raise OracleQueryError(f"intersection query failed: {last_error}") from last_error

    def _blocked(self, hits: RayHits, num_rays: int, device: torch.device) -> torch.Tensor:
        """[num_rays] bool, True where a foreign entity was hit."""
        blocked = torch.zeros(num_rays, dtype=torch.bool, device=device)
        if hits.num_hits == 0:
            return blocked

        entity_ids = hits.entity_ids.to(device)
        foreign = torch.ones_like(entity_ids, dtype=torch.bool)
        if self.self_id is not None:
            foreign &= entity_ids != self.self_id
        if self.viewpoint_id is not None:
            foreign &= entity_ids != self.viewpoint_id

        blocked[hits.ray_ids.to(device)[foreign]] = True
        return blocked

    @staticmethod
    def build_rays(
        points: torch.Tensor,
        target: torch.Tensor
    ) -> Tuple[torch.Tensor, torch.Tensor, torch.Tensor]:
        """
        Segments from points to target as (origin, unit direction, length).

        Returns:
            rays_o: [K, 3]
            rays_d: [K, 3] normalized
            max_t: [K]
        """
        target = target.to(points.device)
        directions = target.unsqueeze(0) - points
        lengths = directions.norm(dim=1)
        rays_d = directions / lengths.clamp_min(1e-12).unsqueeze(1)
        return points, rays_d, lengths

    def cast(
        self,
        points: torch.Tensor,
        target: torch.Tensor
    ) -> Tuple[torch.Tensor, torch.Tensor]:
        """
        Test every point's line of sight to target.

        Args:
            points: [K, 3] segment starts (sampled surface points)
            target: (3,) viewpoint position

        Returns:
            occluded: [K] bool
            failed: [K] bool, rays whose query never succeeded
        """
        K = points.shape[0]
        device = points.device
        occluded = torch.zeros(K, dtype=torch.bool, device=device)
        failed = torch.zeros(K, dtype=torch.bool, device=device)
        if K == 0:
            return occluded, failed

        rays_o, rays_d, max_t = self.build_rays(points, target)

        try:
            hits = self._query(rays_o, rays_d, max_t)
            return self._blocked(hits, K, device), failed
        except OracleQueryError:
            logger.warning("Batch query failed, querying %d rays one by one", K)

        for i in range(K):
            try:
                hits = self._query(rays_o[i:i + 1], rays_d[i:i + 1], max_t[i:i + 1])
            except OracleQueryError:
                failed[i] = True
                continue
            occluded[i] = self._blocked(hits, 1, device)[0]

        if failed.any():
            logger.warning("Dropping %d/%d samples after failed queries", int(failed.sum()), K)
        return occluded, failed

    def probe_corners(self, corners: torch.Tensor, target: torch.Tensor) -> bool:
        """
        Rough occluder probe.

        Args:
            corners: [8, 3] bounding box corners
            target: (3,) viewpoint position

        Returns:
            any_clear: False only if every corner is known to be blocked
        """
        rays_o, rays_d, max_t = self.build_rays(corners, target)
        try:
            hits = self._query(rays_o, rays_d, max_t)
        except OracleQueryError:
            logger.warning("Corner probe failed, skipping rough occlusion gate")
            return True

        blocked = self._blocked(hits, corners.shape[0], corners.device)
        return not bool(blocked.all())

    @staticmethod
    def debug_rays(points: torch.Tensor, target: torch.Tensor) -> DebugRays:
        """Rays from each point to target for debug drawing."""
        return DebugRays(
            origins=points,
            directions=target.to(points.device).unsqueeze(0) - points
        )
