"""Apps module exports"""

from .occlusion import OcclusionRaycaster
from .visibility_estimator import (
    aggregate,
    estimate_visibility,
    TargetObject,
    SceneTarget,
    SurfaceVisibilityEstimator,
)

__all__ = [
    "OcclusionRaycaster",
    "aggregate",
    "estimate_visibility",
    "TargetObject",
    "SceneTarget",
    "SurfaceVisibilityEstimator",
]
