"""Peak picking on the onset strength sequence."""

from __future__ import annotations

import numpy as np

PEAK_THRESHOLD_RATIO = 0.3


def find_peaks(strength: np.ndarray, threshold_ratio: float = PEAK_THRESHOLD_RATIO) -> np.ndarray:
    """Return indices of strict local maxima above ``threshold_ratio * max``.

    The threshold is computed once from the global maximum. End points are
    never peaks. With an all-zero input the threshold is 0 and nothing can
    exceed it, so the result is empty.
    """
    s = np.asarray(strength, dtype=np.float64)
    if s.size < 3:
        return np.zeros(0, dtype=np.int64)
    threshold = threshold_ratio * float(np.max(s))
    mid = s[1:-1]
    is_peak = (mid > threshold) & (mid > s[:-2]) & (mid > s[2:])
    return (np.flatnonzero(is_peak) + 1).astype(np.int64)
