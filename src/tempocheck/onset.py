"""Spectral-flux onset strength."""

from __future__ import annotations

from typing import Callable, Iterable, Optional

import numpy as np

from .spectral import magnitude_spectrum


def onset_strength(
    frames: Iterable[np.ndarray],
    spectrum: Callable[[np.ndarray], np.ndarray] = magnitude_spectrum,
) -> np.ndarray:
    """Half-wave rectified spectral flux, one value per frame.

    Frames are consumed in order and only the previous magnitude spectrum
    is kept. The first frame has no predecessor and scores 0.

    Args:
        frames: iterable of equal-length 1D frames.
        spectrum: frame -> magnitude spectrum.
    """
    out: list[float] = []
    prev: Optional[np.ndarray] = None
    for frame in frames:
        mag = spectrum(frame)
        if prev is None:
            out.append(0.0)
        else:
            out.append(float(np.sum(np.maximum(mag - prev, 0.0))))
        prev = mag
    return np.asarray(out, dtype=np.float64)
