"""
SurfVis: Monte Carlo surface visibility

Estimates what fraction of an object's front-facing surface a camera can
see, by sampling surface points and casting occlusion rays.
"""

__version__ = "0.1.0"
__author__ = "SurfVis Contributors"

from .core.camera import Camera
from .core.config import EstimatorConfig
from .core.data_structures import (
    GeometrySnapshot,
    ClassifiedTriangles,
    SampleSet,
    RayHits,
    VisibilityResult,
)
from .core.errors import (
    SurfVisError,
    InvalidConfigurationError,
    SamplingError,
    NoEligibleTrianglesError,
    OracleQueryError,
)
from .core.scene import IntersectionOracle, Scene
from .core.transforms import trs_matrix
from .apps.visibility_estimator import (
    estimate_visibility,
    TargetObject,
    SurfaceVisibilityEstimator,
)

__all__ = [
    # Core
    "Camera",
    "EstimatorConfig",
    "Scene",
    "IntersectionOracle",
    "trs_matrix",
    # Data structures
    "GeometrySnapshot",
    "ClassifiedTriangles",
    "SampleSet",
    "RayHits",
    "VisibilityResult",
    # Errors
    "SurfVisError",
    "InvalidConfigurationError",
    "SamplingError",
    "NoEligibleTrianglesError",
    "OracleQueryError",
    # Apps
    "estimate_visibility",
    "TargetObject",
    "SurfaceVisibilityEstimator",
]
