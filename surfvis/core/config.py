"""
Estimator configuration
"""

from dataclasses import dataclass
from typing import Optional, Union
import torch

from .errors import InvalidConfigurationError

WEIGHTING_MODES = ("remap", "area", "eligible_area")


@dataclass
class EstimatorConfig:
    """
    Settings that persist across evaluation cycles.

    Args:
        precision: Surface samples (ray casts) per cycle
        draw_rays: Return debug rays with detailed results
        weighting: Triangle weighting mode ("remap", "area", "eligible_area")
        triangle_bounds_size: Edge of the per-triangle box used for frustum culling
        seed: Seed of the estimator's random generator (None = nondeterministic)
        device: Compute device (None = inferred from inputs)
        max_rounds: Rejection rounds before falling back to eligible-area draws
        max_retries: Extra attempts for a failing intersection query
    """
    precision: int = 50
    draw_rays: bool = False
    weighting: str = "area"
    triangle_bounds_size: float = 1.0
    seed: Optional[int] = None
    device: Optional[Union[str, torch.device]] = None
    max_rounds: int = 10000
    max_retries: int = 1

    def __post_init__(self):
        if isinstance(self.precision, bool) or not isinstance(self.precision, int) or self.precision < 1:
            raise InvalidConfigurationError(f"precision must be an int >= 1, got {self.precision!r}")
        if self.weighting not in WEIGHTING_MODES:
            raise InvalidConfigurationError(
                f"weighting must be one of {WEIGHTING_MODES}, got {self.weighting!r}"
            )
        if self.triangle_bounds_size < 0:
            raise InvalidConfigurationError("triangle_bounds_size must be >= 0")
        if self.max_rounds < 1:
            raise InvalidConfigurationError("max_rounds must be >= 1")
        if self.max_retries < 0:
            raise InvalidConfigurationError("max_retries must be >= 0")

    def make_generator(self, device: Union[str, torch.device] = 'cpu') -> torch.Generator:
        """Random generator for this configuration."""
        generator = torch.Generator(device=device)
        if self.seed is not None:
            generator.manual_seed(self.seed)
        else:
            generator.seed()
        return generator
