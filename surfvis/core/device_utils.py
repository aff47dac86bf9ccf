"""
Device utilities for SurfVis

Provides unified device resolution across all modules.
Priority: explicit device arg > input tensors > default ('cuda' or 'cpu')
"""

from typing import Optional, Union
import numpy as np
import torch

from .errors import InvalidConfigurationError


def resolve_device(
    *tensors: Optional[torch.Tensor],
    device: Optional[Union[str, torch.device]] = None,
    default: str = 'cuda'
) -> torch.device:
    """
    Resolve device with priority: explicit device > input tensors > default.

    Args:
        *tensors: Input tensors to infer device from (first tensor wins)
        device: Explicitly specified device (overrides tensor inference if not None)
        default: Default device if no tensors and no explicit device

    Returns:
        torch.device: Resolved device

    Examples:
        >>> t = torch.randn(3, device='cuda:2')
        >>> resolve_device(t)  # Returns device('cuda:2')

        >>> resolve_device(None, None)  # Returns device('cuda') or device('cpu')
    """
    if device is not None:
        if isinstance(device, torch.device):
            return device
        return torch.device(device)

    for tensor in tensors:
        if tensor is not None and isinstance(tensor, torch.Tensor):
            return tensor.device

    if default == 'cuda' and not torch.cuda.is_available():
        return torch.device('cpu')

    return torch.device(default)


def as_tensor(
    data,
    name: str,
    dtype: torch.dtype = torch.float32,
    device: Optional[torch.device] = None
) -> torch.Tensor:
    """
    Convert array-like input (tensor, ndarray, nested sequence) to a tensor.

    Args:
        data: Input data
        name: Argument name used in error messages
        dtype: Target dtype
        device: Target device (None = keep tensor device / cpu)

    Returns:
        tensor: data as a `dtype` tensor on `device`

    Raises:
        InvalidConfigurationError: If data is None or cannot be converted
    """
    if data is None:
        raise InvalidConfigurationError(f"{name} is required")

    if isinstance(data, torch.Tensor):
        tensor = data
    else:
        try:
            tensor = torch.as_tensor(np.asarray(data))
        except (TypeError, ValueError) as e:
            raise InvalidConfigurationError(f"{name} is not array-like: {e}") from e

    return tensor.to(device=device, dtype=dtype) if device is not None else tensor.to(dtype)
