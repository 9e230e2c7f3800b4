"""Playback transport (sounddevice-based) and time readouts."""

from __future__ import annotations

import math
from time import perf_counter
from typing import Optional, Protocol

from .decode import DecodedAudio


class Transport(Protocol):
    """Minimal play/pause/seek surface used by the session."""

    @property
    def is_playing(self) -> bool: ...

    @property
    def position(self) -> float: ...

    @property
    def duration(self) -> float: ...

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def seek(self, seconds: float) -> None: ...


def format_time(seconds: Optional[float]) -> str:
    """Format seconds as ``m:ss``; unknown values read ``0:00``."""
    if seconds is None or not math.isfinite(seconds) or seconds < 0:
        return "0:00"
    mins = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{mins}:{secs:02d}"


class SoundDeviceTransport:
    """Play a decoded buffer through the default output device.

    Imports sounddevice lazily so the rest of the package works on hosts
    without PortAudio.
    """

    def __init__(self, audio: DecodedAudio) -> None:
        self.audio = audio
        self._offset = 0.0  # seconds at last start/pause/seek
        self._started_at: Optional[float] = None

    @property
    def duration(self) -> float:
        return self.audio.duration

    @property
    def is_playing(self) -> bool:
        if self._started_at is None:
            return False
        if self._elapsed() >= self.duration:
            # reached the end; behave like a finished player
            self._offset = self.duration
            self._started_at = None
            return False
        return True

    @property
    def position(self) -> float:
        if self._started_at is None:
            return self._offset
        return min(self.duration, self._elapsed())

    def _elapsed(self) -> float:
        assert self._started_at is not None
        return self._offset + (perf_counter() - self._started_at)

    def play(self) -> None:
        import sounddevice as sd  # local import

        if self.is_playing:
            return
        if self._offset >= self.duration:
            self._offset = 0.0
        start = int(self._offset * self.audio.sample_rate)
        sd.play(self.audio.samples[start:], self.audio.sample_rate)
        self._started_at = perf_counter()

    def pause(self) -> None:
        import sounddevice as sd  # local import

        if self._started_at is None:
            return
        self._offset = self.position
        self._started_at = None
        sd.stop()

    def seek(self, seconds: float) -> None:
        was_playing = self.is_playing
        if was_playing:
            self.pause()
        self._offset = float(min(max(0.0, seconds), self.duration))
        if was_playing:
            self.play()

    def close(self) -> None:
        self.pause()
