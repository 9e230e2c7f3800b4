"""Caller-owned analysis session.

Holds the decoded buffer, the playback transport and the user-facing
messages. The single-flight guard lives here; the pipeline itself is
stateless.
"""

from __future__ import annotations

import logging
import math
import threading
from pathlib import Path
from typing import Callable, Optional, Union

from .decode import DecodedAudio, FileInfo, decode_audio
from .detector import TempoParams, TempoResult, analyze
from .errors import AnalysisBusy, DecodeError, TempoError
from .playback import Transport, format_time

logger = logging.getLogger(__name__)

MSG_IDLE = "Upload an audio file to analyze its BPM"
MSG_LOADED = 'Audio loaded! Click "Analyze BPM" to detect tempo.'
MSG_LOAD_ERROR = "Error loading audio file. Please try a different format."
MSG_ANALYZING = "Analyzing audio..."
MSG_ANALYZE_ERROR = "Error analyzing audio. Please try again."
FORMULA_IDLE = "BPM (Beats Per Minute) represents the tempo of your music"
LABEL_PLAY = "Play Audio"
LABEL_PAUSE = "Pause Audio"


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def format_bpm(bpm: float) -> str:
    return f"{round_half_up(bpm)} BPM"


class AnalysisSession:
    """Load audio, run one analysis at a time and keep display text."""

    def __init__(
        self,
        decoder: Callable[[Union[str, Path]], DecodedAudio] = decode_audio,
        transport_factory: Optional[Callable[[DecodedAudio], Transport]] = None,
        params: Optional[TempoParams] = None,
    ) -> None:
        self.decoder = decoder
        self.transport_factory = transport_factory
        self.params = params or TempoParams()
        self.audio: Optional[DecodedAudio] = None
        self.transport: Optional[Transport] = None
        self.file_info: Optional[FileInfo] = None
        self.last_result: Optional[TempoResult] = None
        self.result_text = MSG_IDLE
        self.formula_text = FORMULA_IDLE
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @property
    def loaded(self) -> bool:
        return self.audio is not None

    def load(self, path: Union[str, Path]) -> FileInfo:
        """Decode ``path`` and prepare playback.

        Raises:
            DecodeError: the decoder rejected the file.
        """
        self._release_transport()
        self.audio = None
        self.last_result = None
        self.file_info = None
        try:
            self.audio = self.decoder(path)
        except DecodeError:
            logger.exception("Error loading audio: %s", path)
            self.result_text = MSG_LOAD_ERROR
            raise
        self.file_info = FileInfo.from_path(path)
        if self.transport_factory is not None:
            self.transport = self.transport_factory(self.audio)
        self.result_text = MSG_LOADED
        logger.info(
            "loaded %s (%d samples @ %d Hz)",
            self.file_info.name,
            self.audio.samples.size,
            self.audio.sample_rate,
        )
        return self.file_info

    def analyze(self) -> Optional[float]:
        """Estimate the tempo of the loaded audio.

        Returns None when nothing is loaded.

        Raises:
            AnalysisBusy: another analysis is still running.
            TempoError: the pipeline rejected the buffer.
        """
        audio = self.audio
        if audio is None:
            return None
        if not self._lock.acquire(blocking=False):
            raise AnalysisBusy("analysis already in progress")
        try:
            self.result_text = MSG_ANALYZING
            result = analyze(audio.samples, audio.sample_rate, self.params)
        except TempoError:
            logger.exception("Error analyzing BPM")
            if self.audio is audio:
                self.result_text = MSG_ANALYZE_ERROR
            raise
        finally:
            self._lock.release()
        if self.audio is not audio:
            # reset or reload happened meanwhile; the result is stale
            logger.info("discarding result for unloaded audio")
            return result.bpm
        self.last_result = result
        self.result_text = format_bpm(result.bpm)
        self.formula_text = f"Detected tempo: {round_half_up(result.bpm)} beats per minute"
        return result.bpm

    def toggle_playback(self) -> str:
        """Play or pause; returns the label the play button should show."""
        t = self.transport
        if t is None:
            return LABEL_PLAY
        if t.is_playing:
            t.pause()
            return LABEL_PLAY
        t.play()
        return LABEL_PAUSE

    def playback_label(self) -> str:
        t = self.transport
        return LABEL_PAUSE if t is not None and t.is_playing else LABEL_PLAY

    def progress_text(self) -> str:
        t = self.transport
        if t is None:
            return f"{format_time(None)} / {format_time(None)}"
        return f"{format_time(t.position)} / {format_time(t.duration)}"

    def reset(self) -> None:
        self._release_transport()
        self.audio = None
        self.file_info = None
        self.last_result = None
        self.result_text = MSG_IDLE
        self.formula_text = FORMULA_IDLE

    def _release_transport(self) -> None:
        t = self.transport
        self.transport = None
        if t is not None and t.is_playing:
            t.pause()
