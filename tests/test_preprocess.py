from __future__ import annotations

import numpy as np
import pytest

from tempocheck.errors import InvalidArgument
from tempocheck.preprocess import downsample


def test_downsample_length_and_values() -> None:
    x = np.random.RandomState(0).randn(1001)
    for factor in (1, 2, 3, 4, 7):
        y = downsample(x, factor)
        assert y.size == -(-x.size // factor)  # ceil
        assert np.array_equal(y, x[np.arange(y.size) * factor])


def test_downsample_keeps_aliasing_no_filter() -> None:
    # Nyquist-rate alternation collapses to a constant after decimation by 2
    x = np.tile([1.0, -1.0], 50)
    y = downsample(x, 2)
    assert np.all(y == 1.0)


def test_downsample_rejects_bad_factor() -> None:
    x = np.ones(10)
    for factor in (0, -1, 2.5):
        with pytest.raises(InvalidArgument):
            downsample(x, factor)
