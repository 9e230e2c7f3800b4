"""BPM resolution from inter-onset intervals.

Intervals are rounded to a fixed resolution and histogrammed; the most
frequent interval gives the tempo as 60 / interval.
"""

from __future__ import annotations

from collections import Counter

import numpy as np

from .errors import InvalidInput

MIN_INTERVAL = 0.1  # seconds, exclusive
MAX_INTERVAL = 4.0  # seconds, exclusive
INTERVAL_RESOLUTION = 0.1  # seconds
DEFAULT_BPM = 120.0


def inter_onset_intervals(
    peaks: np.ndarray,
    sample_rate: float,
    min_interval: float = MIN_INTERVAL,
    max_interval: float = MAX_INTERVAL,
) -> np.ndarray:
    """Gaps between consecutive peaks in seconds, kept iff min < gap < max.

    Args:
        peaks: ascending peak indices.
        sample_rate: rate the index difference is divided by (Hz).
    """
    if not sample_rate > 0:
        raise InvalidInput(f"sample_rate must be positive, got {sample_rate!r}")
    p = np.asarray(peaks, dtype=np.int64)
    if p.size < 2:
        return np.zeros(0, dtype=np.float64)
    iv = np.diff(p) / float(sample_rate)
    return iv[(iv > min_interval) & (iv < max_interval)]


def _interval_keys(intervals: np.ndarray, resolution: float) -> Counter:
    # Round half up to integer multiples of the resolution
    steps = 1.0 / resolution
    x = np.asarray(intervals, dtype=np.float64)
    keys = np.floor(x * steps + 0.5).astype(np.int64)
    return Counter(int(k) for k in keys)


def interval_histogram(
    intervals: np.ndarray,
    resolution: float = INTERVAL_RESOLUTION,
) -> dict[float, int]:
    """Count intervals per rounded value (seconds -> count), ascending keys."""
    counts = _interval_keys(intervals, resolution)
    steps = 1.0 / resolution
    return {k / steps: counts[k] for k in sorted(counts)}


def resolve_bpm(
    intervals: np.ndarray,
    resolution: float = INTERVAL_RESOLUTION,
    default_bpm: float = DEFAULT_BPM,
) -> float:
    """Return 60 / most common rounded interval, or ``default_bpm`` if none.

    Ties on the highest count go to the shortest interval.

    Raises:
        InvalidInput: an interval rounds to 0 s or less at this resolution.
    """
    counts = _interval_keys(intervals, resolution)
    if not counts:
        return float(default_bpm)
    if min(counts) <= 0:
        raise InvalidInput(f"intervals below {resolution / 2} s round to zero")
    best = max(counts.values())
    mode = min(k for k, c in counts.items() if c == best)
    return 60.0 / (mode / (1.0 / resolution))
