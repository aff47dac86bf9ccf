"""Sampling module exports"""

from .geometry import build_snapshot, triangle_areas, validate_mesh
from .classifier import classify_triangles
from .triangle_sampler import sample_triangle_indices, check_sampleable, WEIGHTING_MODES
from .point_sampler import sample_points, barycentric_coordinates

__all__ = [
    "build_snapshot",
    "triangle_areas",
    "validate_mesh",
    "classify_triangles",
    "sample_triangle_indices",
    "check_sampleable",
    "WEIGHTING_MODES",
    "sample_points",
    "barycentric_coordinates",
]
