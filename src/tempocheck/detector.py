"""Onset-driven tempo estimation pipeline.

downsample -> framed magnitude spectra -> spectral flux -> peak picking
-> inter-onset intervals -> histogram mode -> BPM.

The pipeline is stateless: every call works on its own copy of the
intermediates, so it is safe to call from several threads at once.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from .bpm import (
    DEFAULT_BPM,
    INTERVAL_RESOLUTION,
    MAX_INTERVAL,
    MIN_INTERVAL,
    inter_onset_intervals,
    resolve_bpm,
)
from .errors import InvalidArgument, InvalidInput
from .onset import onset_strength
from .peaks import PEAK_THRESHOLD_RATIO, find_peaks
from .preprocess import downsample
from .spectral import FRAME_LENGTH, HOP_LENGTH, iter_frames

logger = logging.getLogger(__name__)

DOWNSAMPLE_FACTOR = 4


@dataclass(frozen=True)
class TempoParams:
    downsample_factor: int = DOWNSAMPLE_FACTOR
    frame_length: int = FRAME_LENGTH      # samples after downsampling
    hop_length: int = HOP_LENGTH          # samples after downsampling
    threshold_ratio: float = PEAK_THRESHOLD_RATIO
    min_interval: float = MIN_INTERVAL    # s, exclusive
    max_interval: float = MAX_INTERVAL    # s, exclusive
    resolution: float = INTERVAL_RESOLUTION  # s
    default_bpm: float = DEFAULT_BPM

    def __post_init__(self) -> None:
        if self.downsample_factor < 1:
            raise InvalidArgument("downsample_factor must be >= 1")
        if self.frame_length < 1 or self.hop_length < 1:
            raise InvalidArgument("frame_length and hop_length must be >= 1")
        if self.resolution <= 0:
            raise InvalidArgument("resolution must be positive")
        # accepted intervals must round to a non-zero bin
        if self.min_interval < 0.5 * self.resolution:
            raise InvalidArgument("min_interval must be at least half the resolution")
        if self.max_interval <= self.min_interval:
            raise InvalidArgument("max_interval must exceed min_interval")
        if self.default_bpm <= 0:
            raise InvalidArgument("default_bpm must be positive")


@dataclass
class TempoResult:
    bpm: float
    onset: np.ndarray  # onset strength per frame
    peaks: np.ndarray  # frame indices
    intervals: np.ndarray  # retained inter-onset intervals (s)
    sample_rate: float  # rate after downsampling (Hz)
    fallback: bool  # True when no interval survived and default_bpm was returned


def _validate(samples: np.ndarray, sample_rate: float) -> np.ndarray:
    x = np.asarray(samples, dtype=np.float64)
    if x.ndim != 1:
        raise InvalidInput(f"expected a mono 1D sample buffer, got shape {x.shape}")
    if x.size == 0:
        raise InvalidInput("sample buffer is empty")
    try:
        rate = float(sample_rate)
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"sample_rate is not a number: {sample_rate!r}") from e
    if not math.isfinite(rate) or rate <= 0:
        raise InvalidInput(f"sample_rate must be positive and finite, got {sample_rate!r}")
    return x


def analyze(
    samples: np.ndarray,
    sample_rate: float,
    params: TempoParams | None = None,
) -> TempoResult:
    """Run the full pipeline and keep the intermediates.

    Args:
        samples: mono audio (1D array, amplitudes typically in [-1, 1]).
        sample_rate: sampling rate of ``samples`` (Hz).
        params: pipeline constants; defaults to ``TempoParams()``.

    Raises:
        InvalidInput: empty buffer, non-1D buffer or non-positive rate.
    """
    p = params or TempoParams()
    x = _validate(samples, sample_rate)
    y = downsample(x, p.downsample_factor)
    rate = float(sample_rate) / p.downsample_factor
    onset = onset_strength(iter_frames(y, p.frame_length, p.hop_length))
    peaks = find_peaks(onset, p.threshold_ratio)
    intervals = inter_onset_intervals(peaks, rate, p.min_interval, p.max_interval)
    bpm = resolve_bpm(intervals, p.resolution, p.default_bpm)
    logger.debug(
        "tempo: %d samples -> %d frames, %d peaks, %d intervals, %.2f BPM",
        x.size,
        onset.size,
        peaks.size,
        intervals.size,
        bpm,
    )
    return TempoResult(
        bpm=bpm,
        onset=onset,
        peaks=peaks,
        intervals=intervals,
        sample_rate=rate,
        fallback=intervals.size == 0,
    )


def detect_bpm(
    samples: np.ndarray,
    sample_rate: float,
    params: TempoParams | None = None,
) -> float:
    """Estimate the dominant tempo of ``samples`` in BPM (unrounded)."""
    return analyze(samples, sample_rate, params).bpm
