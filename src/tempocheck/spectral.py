"""Framed magnitude spectra.

Frames are taken without a window function. ``magnitude_spectrum`` uses
the FFT; ``dft_magnitude`` evaluates the DFT sums directly and is kept
as the reference the fast path is checked against.
"""

from __future__ import annotations

from typing import Iterator

import numpy as np

from .errors import InvalidArgument

FRAME_LENGTH = 1024
HOP_LENGTH = 512


def _check_lengths(frame_length: int, hop_length: int) -> None:
    if frame_length < 1:
        raise InvalidArgument(f"frame_length must be >= 1, got {frame_length}")
    if hop_length < 1:
        raise InvalidArgument(f"hop_length must be >= 1, got {hop_length}")


def frame_count(n: int, frame_length: int = FRAME_LENGTH, hop_length: int = HOP_LENGTH) -> int:
    """Number of complete frames in a signal of ``n`` samples."""
    _check_lengths(frame_length, hop_length)
    if n < frame_length:
        return 0
    return (n - frame_length) // hop_length + 1


def iter_frames(
    x: np.ndarray,
    frame_length: int = FRAME_LENGTH,
    hop_length: int = HOP_LENGTH,
) -> Iterator[np.ndarray]:
    """Yield overlapping frames at offsets 0, hop, 2*hop, ...

    A frame is produced while ``offset + frame_length <= len(x)``; the
    trailing partial frame is dropped. Frames are read-only views.
    """
    _check_lengths(frame_length, hop_length)
    x = np.asarray(x, dtype=np.float64)
    for start in range(0, frame_count(x.size, frame_length, hop_length) * hop_length, hop_length):
        frame = x[start : start + frame_length]
        frame.flags.writeable = False
        yield frame


def magnitude_spectrum(frame: np.ndarray) -> np.ndarray:
    """Return |DFT| over all bins (same length as ``frame``)."""
    return np.abs(np.fft.fft(np.asarray(frame, dtype=np.float64)))


def dft_magnitude(frame: np.ndarray) -> np.ndarray:
    """Direct O(N^2) DFT magnitude.

    real(k) = sum x[n] cos(-2 pi k n / N), imag(k) = sum x[n] sin(-2 pi k n / N)
    """
    x = np.asarray(frame, dtype=np.float64)
    n = x.size
    if n == 0:
        return np.zeros(0, dtype=np.float64)
    idx = np.arange(n, dtype=np.int64)
    # k*n reduced mod N keeps the angle within one turn
    angle = -2.0 * np.pi * (np.outer(idx, idx) % n) / n
    real = np.cos(angle) @ x
    imag = np.sin(angle) @ x
    return np.sqrt(real * real + imag * imag)
