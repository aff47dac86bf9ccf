"""
Area-weighted triangle sampler

Draws triangle indices by rejection sampling over the full (unfiltered)
area sequence and rejects draws that land on excluded slots.

Weighting modes:
    "remap"          r ~ U[0, T) mapped linearly to round(r / T * (N - 1)).
                     Index-uniform; area only enters through T.
    "area"           r ~ U[0, T) located in cumsum(areas) (inverse CDF).
                     Eligible triangles are chosen in proportion to their
                     own area; T only sets the rejection rate.
    "eligible_area"  T recomputed over eligible triangles; no rejection.

Rejection draws run in float64. When no eligible slot owns a nonzero CDF
interval, or `max_rounds` is exhausted, the remaining samples are drawn
with the "eligible_area" weights.
"""

import logging
from typing import Optional, Union
import torch

from ..core.config import WEIGHTING_MODES
from ..core.data_structures import ClassifiedTriangles
from ..core.errors import InvalidConfigurationError, NoEligibleTrianglesError

logger = logging.getLogger(__name__)


def uniform(
    shape,
    generator: Optional[torch.Generator],
    device: Union[str, torch.device],
    low: float = 0.0,
    high: float = 1.0,
    dtype: torch.dtype = torch.float32
) -> torch.Tensor:
    """U[low, high) floats drawn from `generator`, returned on `device`."""
    gen_device = generator.device if generator is not None else device
    r = torch.rand(shape, generator=generator, device=gen_device, dtype=dtype)
    r = r.to(device)
    return low + r * (high - low)


def check_sampleable(classified: ClassifiedTriangles, weighting: str):
    """
    Verify that there is something to sample.

    Raises:
        NoEligibleTrianglesError: no eligible triangle, or (area modes) no
            eligible area mass / zero total area
    """
    if classified.num_triangles == 0 or classified.num_eligible == 0:
        raise NoEligibleTrianglesError("no eligible triangle to sample from")

    total_area = classified.areas.sum().item()
    if total_area <= 0:
        raise NoEligibleTrianglesError("total surface area is zero")

    if weighting != "remap":
        eligible_area = classified.areas[classified.eligible].sum().item()
        if eligible_area <= 0:
            raise NoEligibleTrianglesError("eligible triangles carry no area")


def area_cdf(areas: torch.Tensor) -> torch.Tensor:
    """[N] float64 cumulative areas."""
    return torch.cumsum(areas.double(), dim=0)


def has_reachable_slot(classified: ClassifiedTriangles, cdf: torch.Tensor) -> bool:
    """True if some eligible slot owns a nonzero-width interval of `cdf`."""
    widths = torch.diff(cdf, prepend=cdf.new_zeros(1))
    return bool((classified.eligible & (widths > 0)).any())


def _draw_candidates(
    classified: ClassifiedTriangles,
    count: int,
    weighting: str,
    generator: Optional[torch.Generator],
    cdf: Optional[torch.Tensor]
) -> torch.Tensor:
    """One candidate index per requested sample (may land on excluded slots)."""
    areas = classified.areas
    device = areas.device
    N = classified.num_triangles
    total = areas.double().sum().item()

    r = uniform(count, generator, device, 0.0, total, dtype=torch.float64)

    if weighting == "remap":
        index = torch.round(r / total * (N - 1)).long()
    else:
        index = torch.searchsorted(cdf, r, right=True)

    return index.clamp_(0, N - 1)


def _draw_eligible_area(
    classified: ClassifiedTriangles,
    count: int,
    generator: Optional[torch.Generator]
) -> torch.Tensor:
    """Eligible slots drawn in proportion to their area, without rejection."""
    device = classified.areas.device
    weights = classified.areas.double() * classified.eligible.double()
    gen_device = generator.device if generator is not None else device
    face_ids = torch.multinomial(
        weights.to(gen_device), count, replacement=True, generator=generator
    )
    return face_ids.to(device)


def sample_triangle_indices(
    classified: ClassifiedTriangles,
    num_samples: int,
    generator: Optional[torch.Generator] = None,
    weighting: str = "area",
    max_rounds: int = 10000
) -> torch.Tensor:
    """
    Sample eligible triangle indices.

    Args:
        classified: ClassifiedTriangles
        num_samples: Number of indices to draw
        generator: Random source (None = global torch RNG)
        weighting: "remap", "area" or "eligible_area"
        max_rounds: Rejection rounds before the remaining samples are drawn
            with "eligible_area" weights

    Returns:
        face_ids: [num_samples] int64, every entry an eligible slot

    Raises:
        InvalidConfigurationError: unknown weighting mode
        NoEligibleTrianglesError: nothing can be sampled
    """
    if weighting not in WEIGHTING_MODES:
        raise InvalidConfigurationError(
            f"weighting must be one of {WEIGHTING_MODES}, got {weighting!r}"
        )
    check_sampleable(classified, weighting)

    device = classified.areas.device
    if num_samples <= 0:
        return torch.zeros(0, dtype=torch.int64, device=device)

    if weighting == "eligible_area":
        return _draw_eligible_area(classified, num_samples, generator)

    cdf = area_cdf(classified.areas) if weighting == "area" else None
    if cdf is not None and not has_reachable_slot(classified, cdf):
        logger.warning(
            "Eligible triangles have no width in the area CDF, "
            "drawing %d samples by eligible area", num_samples
        )
        return _draw_eligible_area(classified, num_samples, generator)

    accepted = []
    remaining = num_samples
    rounds = 0
    while remaining > 0 and rounds < max_rounds:
        candidates = _draw_candidates(classified, remaining, weighting, generator, cdf)
        kept = candidates[classified.eligible[candidates]]
        if kept.numel() > 0:
            accepted.append(kept)
            remaining -= kept.numel()
        rounds += 1

    if remaining > 0:
        logger.warning(
            "Rejection sampling stopped after %d rounds (%d/%d samples), "
            "drawing the rest by eligible area",
            rounds, num_samples - remaining, num_samples
        )
        accepted.append(_draw_eligible_area(classified, remaining, generator))

    logger.debug(
        "Sampled %d triangles in %d rounds (%d/%d eligible, weighting=%s)",
        num_samples, rounds, classified.num_eligible, classified.num_triangles, weighting
    )
    return torch.cat(accepted)
