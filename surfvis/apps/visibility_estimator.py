"""
Surface visibility estimation: Monte Carlo fraction of an object's
front-facing surface that has a clear line of sight to a camera.

Per cycle:
    snapshot -> frustum bounds gate -> rough 8-corner occluder probe
    -> frustum/backface classification -> area-weighted triangle sampling
    -> barycentric point sampling -> occlusion ray casts -> ratio
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union
import torch

from ..core.camera import Camera, planes_intersect_aabb
from ..core.config import EstimatorConfig
from ..core.data_structures import VisibilityResult
from ..core.device_utils import resolve_device
from ..core.errors import InvalidConfigurationError, NoEligibleTrianglesError
from ..core.scene import IntersectionOracle, Scene
from ..core.transforms import aabb_corners
from ..sampling.geometry import build_snapshot
from ..sampling.classifier import classify_triangles
from ..sampling.triangle_sampler import sample_triangle_indices
from ..sampling.point_sampler import sample_points
from .occlusion import OcclusionRaycaster

logger = logging.getLogger(__name__)


def aggregate(num_samples: int, occluded: torch.Tensor, failed: torch.Tensor) -> float:
    """
    Visibility ratio over the samples whose queries succeeded.

    Args:
        num_samples: Samples drawn
        occluded: [K] bool
        failed: [K] bool

    Returns:
        visibility: (valid - occluded) / valid, 0.0 when no sample is valid
    """
    failed_count = int(failed.sum().item())
    occluded_count = int((occluded & ~failed).sum().item())
    valid = num_samples - failed_count
    if valid <= 0:
        logger.warning("No sample produced a usable intersection query, reporting 0")
        return 0.0
    return (valid - occluded_count) / valid


def estimate_visibility(
    vertices,
    faces,
    camera: Camera,
    oracle: IntersectionOracle,
    entity_id: Optional[int],
    transform: Optional[torch.Tensor] = None,
    config: Optional[EstimatorConfig] = None,
    generator: Optional[torch.Generator] = None,
    return_details: bool = False
) -> Union[float, VisibilityResult]:
    """
    Run one visibility evaluation cycle.

    Args:
        vertices: [V, 3] local-space vertices of the object
        faces: [F, 3] triangle indices
        camera: Viewpoint
        oracle: Intersection oracle for occlusion queries
        entity_id: Oracle entity id of the object (ignored as an occluder)
        transform: [4, 4] object-to-world matrix (None = identity)
        config: EstimatorConfig (None = defaults)
        generator: Random source (None = built from config.seed)
        return_details: Whether to return a VisibilityResult

    Returns:
        If return_details=False:
            visibility: float in [0, 1]
        If return_details=True:
            result: VisibilityResult
    """
    if camera is None:
        raise InvalidConfigurationError("camera is required")
    if oracle is None:
        raise InvalidConfigurationError("intersection oracle is required")
    if vertices is None or faces is None:
        raise InvalidConfigurationError("mesh vertices and faces are required")
    config = config or EstimatorConfig()

    device = resolve_device(
        vertices if isinstance(vertices, torch.Tensor) else None,
        device=config.device,
        default='cpu'
    )
    if generator is None:
        generator = config.make_generator(device)

    def finish(result: VisibilityResult):
        return result if return_details else result.visibility

    snapshot = build_snapshot(vertices, faces, transform, device=device)
    if snapshot.num_triangles == 0:
        logger.debug("Mesh has no triangles")
        return finish(VisibilityResult(visibility=0.0, stage="empty_mesh"))

    camera = camera.to(device)
    planes = camera.frustum_planes()

    if not bool(planes_intersect_aabb(planes, snapshot.bounds[0], snapshot.bounds[1])):
        logger.debug("Object bounds outside view frustum")
        return finish(VisibilityResult(visibility=0.0, stage="outside_frustum"))

    raycaster = OcclusionRaycaster(
        oracle,
        self_id=entity_id,
        viewpoint_id=camera.entity_id,
        max_retries=config.max_retries
    )

    if not raycaster.probe_corners(aabb_corners(snapshot.bounds), camera.position):
        logger.debug("All bounding box corners occluded")
        return finish(VisibilityResult(visibility=0.0, stage="rough_occluded"))

    classified = classify_triangles(
        snapshot, planes, camera.position, bounds_size=config.triangle_bounds_size
    )

    try:
        face_ids = sample_triangle_indices(
            classified,
            config.precision,
            generator=generator,
            weighting=config.weighting,
            max_rounds=config.max_rounds
        )
    except NoEligibleTrianglesError as e:
        logger.debug("Nothing to sample: %s", e)
        return finish(VisibilityResult(visibility=0.0, stage="no_eligible"))

    samples = sample_points(classified.triangles, face_ids, generator=generator)
    occluded, failed = raycaster.cast(samples.points, camera.position)
    visibility = aggregate(config.precision, occluded, failed)

    debug_rays = None
    if config.draw_rays:
        debug_rays = raycaster.debug_rays(samples.points, camera.position)
        for origin, direction in zip(debug_rays.origins.tolist(), debug_rays.directions.tolist()):
            logger.debug("ray origin=%s direction=%s", origin, direction)

    return finish(VisibilityResult(
        visibility=visibility,
        stage="sampled",
        num_samples=config.precision,
        occluded_count=int((occluded & ~failed).sum().item()),
        failed_count=int(failed.sum().item()),
        samples=samples,
        occluded=occluded,
        debug_rays=debug_rays
    ))


@dataclass
class TargetObject:
    """
    Object whose visibility is estimated.

    The transform may be replaced between cycles.

    Args:
        vertices: [V, 3] local-space vertices
        faces: [F, 3] triangle indices
        transform: [4, 4] object-to-world matrix (None = identity)
        entity_id: Oracle entity id of the object
    """
    vertices: torch.Tensor
    faces: torch.Tensor
    transform: Optional[torch.Tensor] = None
    entity_id: Optional[int] = None


class SceneTarget:
    """Target that reads its mesh and transform from a Scene entity every cycle"""

    def __init__(self, scene: Scene, entity_id: int):
        scene.get_mesh(entity_id)
        self.scene = scene
        self.entity_id = entity_id

    @property
    def vertices(self) -> torch.Tensor:
        return self.scene.get_mesh(self.entity_id)[0]

    @property
    def faces(self) -> torch.Tensor:
        return self.scene.get_mesh(self.entity_id)[1]

    @property
    def transform(self) -> Optional[torch.Tensor]:
        return self.scene.get_mesh(self.entity_id)[2]


class SurfaceVisibilityEstimator:
    """
    Visibility estimator bound to one target, camera and oracle.

    Collaborators are bound once at construction; each call to `estimate`
    runs a fresh cycle. Only the configuration and the random generator
    survive between cycles.

    Args:
        target: TargetObject or SceneTarget
        camera: Viewpoint
        oracle: Intersection oracle
        config: EstimatorConfig (None = defaults)
    """

    def __init__(
        self,
        target: Union[TargetObject, SceneTarget],
        camera: Camera,
        oracle: IntersectionOracle,
        config: Optional[EstimatorConfig] = None
    ):
        if target is None:
            raise InvalidConfigurationError("target is required")
        if camera is None:
            raise InvalidConfigurationError("camera is required")
        if oracle is None:
            raise InvalidConfigurationError("intersection oracle is required")

        self.target = target
        self.camera = camera
        self.oracle = oracle
        self.config = config or EstimatorConfig()

        device = resolve_device(
            target.vertices if isinstance(target.vertices, torch.Tensor) else None,
            device=self.config.device,
            default='cpu'
        )
        self.generator = self.config.make_generator(device)
        self.last_result: Optional[VisibilityResult] = None

    @classmethod
    def for_scene_entity(
        cls,
        scene: Scene,
        entity_id: int,
        camera: Camera,
        config: Optional[EstimatorConfig] = None
    ) -> "SurfaceVisibilityEstimator":
        """Estimator for an object that lives in `scene`, using the scene as oracle."""
        return cls(SceneTarget(scene, entity_id), camera, scene, config)

    def estimate(self, return_details: bool = False) -> Union[float, VisibilityResult]:
        """
        Run one evaluation cycle.

        Args:
            return_details: Whether to return a VisibilityResult

        Returns:
            visibility: float in [0, 1], or VisibilityResult
        """
        result = estimate_visibility(
            self.target.vertices,
            self.target.faces,
            self.camera,
            self.oracle,
            entity_id=self.target.entity_id,
            transform=self.target.transform,
            config=self.config,
            generator=self.generator,
            return_details=True
        )
        self.last_result = result
        return result if return_details else result.visibility

    @property
    def visibility_percentage(self) -> float:
        """Last estimate in percent (0 before the first cycle)"""
        if self.last_result is None:
            return 0.0
        return self.last_result.percentage

    def format_label(self, decimals: Optional[int] = None) -> str:
        """Last estimate as a label, e.g. "37.5%"."""
        pct = self.visibility_percentage
        if decimals is None:
            return f"{pct:g}%"
        return f"{pct:.{decimals}f}%"
