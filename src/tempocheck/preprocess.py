"""Signal preprocessing for tempo estimation."""

from __future__ import annotations

import numpy as np

from .errors import InvalidArgument


def downsample(x: np.ndarray, factor: int) -> np.ndarray:
    """Keep every ``factor``-th sample starting at index 0.

    Plain decimation: no anti-alias filter is applied, so output is
    ``x[::factor]`` with length ``ceil(len(x) / factor)``.

    Args:
        x: 1D array.
        factor: decimation factor (>=1).
    """
    if isinstance(factor, bool) or int(factor) != factor or factor < 1:
        raise InvalidArgument(f"downsample factor must be a positive integer, got {factor!r}")
    x = np.asarray(x, dtype=np.float64)
    return x[:: int(factor)].copy()
