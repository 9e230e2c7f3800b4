from __future__ import annotations

import threading

import numpy as np
import pytest
import soundfile as sf

import tempocheck.session as session_mod
from tempocheck.decode import DecodedAudio
from tempocheck.errors import AnalysisBusy, DecodeError, InvalidInput
from tempocheck.session import (
    FORMULA_IDLE,
    MSG_ANALYZE_ERROR,
    MSG_IDLE,
    MSG_LOAD_ERROR,
    MSG_LOADED,
    AnalysisSession,
    format_bpm,
)


class FakeTransport:
    def __init__(self, audio: DecodedAudio) -> None:
        self.duration = audio.duration
        self.position = 0.0
        self.is_playing = False

    def play(self) -> None:
        self.is_playing = True

    def pause(self) -> None:
        self.is_playing = False

    def seek(self, seconds: float) -> None:
        self.position = seconds


@pytest.fixture
def wav_path(tmp_path):
    path = tmp_path / "tone.wav"
    t = np.arange(16000) / 8000.0
    x = (0.5 * np.sin(2 * np.pi * 440 * t) * 32767).astype(np.int16)
    sf.write(str(path), x, 8000, subtype="PCM_16")
    return path


def test_load_and_analyze(wav_path) -> None:
    s = AnalysisSession(transport_factory=FakeTransport)
    assert s.result_text == MSG_IDLE
    info = s.load(wav_path)
    assert info.name == "tone.wav"
    assert s.loaded
    assert s.result_text == MSG_LOADED

    bpm = s.analyze()
    # frame gaps divided by 2000 Hz fall below the 0.1 s interval floor
    assert bpm == 120.0
    assert s.result_text == "120 BPM"
    assert s.formula_text == "Detected tempo: 120 beats per minute"
    assert s.last_result is not None and s.last_result.fallback


def test_analyze_without_audio_returns_none() -> None:
    s = AnalysisSession()
    assert s.analyze() is None
    assert s.result_text == MSG_IDLE


@pytest.mark.parametrize("payload", [b"garbage", b"RIFF", b"RIFF$\x00\x00\x00WAVEfmt "])
def test_load_error_sets_message(tmp_path, payload) -> None:
    bad = tmp_path / "bad.wav"
    bad.write_bytes(payload)
    s = AnalysisSession()
    with pytest.raises(DecodeError):
        s.load(bad)
    assert not s.loaded
    assert s.result_text == MSG_LOAD_ERROR


def test_core_error_sets_message(wav_path) -> None:
    s = AnalysisSession(decoder=lambda p: DecodedAudio(np.zeros(0), 8000))
    s.load(wav_path)
    with pytest.raises(InvalidInput):
        s.analyze()
    assert s.result_text == MSG_ANALYZE_ERROR
    assert not s.busy


def test_single_flight_guard(wav_path, monkeypatch) -> None:
    started = threading.Event()
    release = threading.Event()
    real_analyze = session_mod.analyze

    def slow_analyze(*args, **kwargs):
        started.set()
        release.wait(5.0)
        return real_analyze(*args, **kwargs)

    monkeypatch.setattr(session_mod, "analyze", slow_analyze)
    s = AnalysisSession()
    s.load(wav_path)
    results: list[float] = []
    worker = threading.Thread(target=lambda: results.append(s.analyze()))
    worker.start()
    assert started.wait(5.0)
    assert s.busy
    with pytest.raises(AnalysisBusy):
        s.analyze()
    release.set()
    worker.join(5.0)
    assert results == [120.0]
    assert not s.busy


def test_playback_labels_and_progress(wav_path) -> None:
    s = AnalysisSession(transport_factory=FakeTransport)
    assert s.toggle_playback() == "Play Audio"
    assert s.progress_text() == "0:00 / 0:00"
    s.load(wav_path)
    assert s.progress_text() == "0:00 / 0:02"
    assert s.toggle_playback() == "Pause Audio"
    assert s.playback_label() == "Pause Audio"
    assert s.toggle_playback() == "Play Audio"


def test_reset_restores_initial_state(wav_path) -> None:
    s = AnalysisSession(transport_factory=FakeTransport)
    s.load(wav_path)
    s.toggle_playback()
    transport = s.transport
    s.analyze()
    s.reset()
    assert not transport.is_playing
    assert s.transport is None
    assert not s.loaded
    assert s.file_info is None
    assert s.result_text == MSG_IDLE
    assert s.formula_text == FORMULA_IDLE


def test_format_bpm_rounds_half_up() -> None:
    assert format_bpm(119.5) == "120 BPM"
    assert format_bpm(120.49) == "120 BPM"
    assert format_bpm(60 / 0.7) == "86 BPM"


def test_reset_during_analysis_discards_result(wav_path, monkeypatch) -> None:
    started = threading.Event()
    release = threading.Event()
    real_analyze = session_mod.analyze

    def slow_analyze(*args, **kwargs):
        started.set()
        release.wait(5.0)
        return real_analyze(*args, **kwargs)

    monkeypatch.setattr(session_mod, "analyze", slow_analyze)
    s = AnalysisSession(transport_factory=FakeTransport)
    s.load(wav_path)
    worker = threading.Thread(target=s.analyze)
    worker.start()
    assert started.wait(5.0)
    s.reset()
    release.set()
    worker.join(5.0)
    assert not s.busy
    assert s.last_result is None
    assert s.result_text == MSG_IDLE
    assert s.formula_text == FORMULA_IDLE
