"""Core module exports"""

from .camera import Camera, planes_intersect_aabb
from .config import EstimatorConfig
from .data_structures import (
    GeometrySnapshot,
    ClassifiedTriangles,
    SampleSet,
    RayHits,
    DebugRays,
    VisibilityResult,
)
from .errors import (
    SurfVisError,
    InvalidConfigurationError,
    SamplingError,
    NoEligibleTrianglesError,
    OracleQueryError,
)
from .scene import IntersectionOracle, Scene
from .transforms import trs_matrix, transform_points, compute_bounds, aabb_corners

__all__ = [
    "Camera",
    "planes_intersect_aabb",
    "EstimatorConfig",
    "GeometrySnapshot",
    "ClassifiedTriangles",
    "SampleSet",
    "RayHits",
    "DebugRays",
    "VisibilityResult",
    "SurfVisError",
    "InvalidConfigurationError",
    "SamplingError",
    "NoEligibleTrianglesError",
    "OracleQueryError",
    "IntersectionOracle",
    "Scene",
    "trs_matrix",
    "transform_points",
    "compute_bounds",
    "aabb_corners",
]
