from __future__ import annotations

import numpy as np
import pytest

from tempocheck.detector import TempoParams, analyze, detect_bpm
from tempocheck.errors import InvalidArgument, InvalidInput
from tempocheck.spectral import frame_count


def click_signal(gap_frames: int, n_clicks: int, factor: int = 4, hop: int = 512) -> np.ndarray:
    """Impulses whose onsets land ``gap_frames`` analysis frames apart.

    An impulse at downsampled position p first enters frame p // hop - 1,
    which is where its flux spike appears.
    """
    n_ds = hop * (gap_frames * n_clicks + 10)
    x = np.zeros(n_ds * factor, dtype=np.float64)
    for j in range(n_clicks):
        p = hop * (gap_frames * j + 2) + 100
        x[p * factor] = 1.0
    return x


def test_short_buffer_returns_default() -> None:
    # < 1024 samples after downsampling by 4
    x = np.random.RandomState(0).randn(4000)
    res = analyze(x, 44100)
    assert res.onset.size == 0
    assert res.peaks.size == 0
    assert res.fallback
    assert res.bpm == 120.0
    assert detect_bpm(x, 44100) == 120.0


def test_silence_returns_default() -> None:
    res = analyze(np.zeros(44100 * 2), 44100)
    assert res.onset.size > 0
    assert np.all(res.onset == 0.0)
    assert res.peaks.size == 0
    assert res.bpm == 120.0


def test_onset_length_matches_frame_count() -> None:
    for n in (4096, 4097, 10000, 44100):
        res = analyze(np.zeros(n), 8000)
        assert res.onset.size == frame_count(-(-n // 4))
        assert res.sample_rate == 2000.0


def test_click_track_tempo() -> None:
    x = click_signal(gap_frames=40, n_clicks=5)
    # downsampled rate 100 Hz -> 40 frames read as 0.4 s
    res = analyze(x, 400)
    assert res.peaks.tolist() == [1, 41, 81, 121, 161]
    assert not res.fallback
    assert res.intervals.size == 4
    assert res.bpm == pytest.approx(150.0)


def test_peak_gaps_are_scaled_by_sample_rate() -> None:
    x = click_signal(gap_frames=40, n_clicks=5)
    # same peaks, but 40 / 11025 s is below the accepted interval range
    res = analyze(x, 44100)
    assert res.peaks.size == 5
    assert res.intervals.size == 0
    assert res.fallback
    assert res.bpm == 120.0


def test_repeated_runs_are_identical() -> None:
    x = np.random.RandomState(5).uniform(-1.0, 1.0, 4 * 1024 * 8)
    a = detect_bpm(x, 400)
    b = detect_bpm(x, 400)
    assert a == b
    ra = analyze(x, 400)
    rb = analyze(x, 400)
    assert np.array_equal(ra.onset, rb.onset)
    assert np.array_equal(ra.peaks, rb.peaks)


def test_input_is_not_modified() -> None:
    x = np.random.RandomState(6).randn(8192)
    before = x.copy()
    analyze(x, 22050)
    assert np.array_equal(x, before)


@pytest.mark.parametrize(
    "samples, rate",
    [
        (np.zeros(0), 44100),
        (np.zeros((2, 4096)), 44100),
        (np.zeros(4096), 0),
        (np.zeros(4096), -8000),
        (np.zeros(4096), float("nan")),
        (np.zeros(4096), float("inf")),
    ],
)
def test_invalid_input_raises(samples, rate) -> None:
    with pytest.raises(InvalidInput):
        detect_bpm(samples, rate)


def test_params_validation() -> None:
    with pytest.raises(InvalidArgument):
        TempoParams(downsample_factor=0)
    with pytest.raises(InvalidArgument):
        TempoParams(hop_length=0)
    with pytest.raises(InvalidArgument):
        TempoParams(min_interval=2.0, max_interval=1.0)
    with pytest.raises(InvalidArgument):
        TempoParams(min_interval=0.01)


def test_custom_params_are_used() -> None:
    x = click_signal(gap_frames=40, n_clicks=5, factor=2, hop=256)
    params = TempoParams(downsample_factor=2, frame_length=512, hop_length=256)
    # downsampled rate 100 Hz again
    res = analyze(x, 200, params)
    assert res.peaks.tolist() == [1, 41, 81, 121, 161]
    assert res.bpm == pytest.approx(150.0)
