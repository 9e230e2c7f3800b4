"""Audio decoding into a mono float sample buffer (soundfile-based).

Any container libsndfile understands (WAV, FLAC, OGG/Vorbis, MP3 with
libsndfile >= 1.1, ...) is accepted; only the first channel is kept.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Union

import numpy as np
import soundfile as sf

from .errors import DecodeError

logger = logging.getLogger(__name__)

Source = Union[str, Path, BinaryIO]

# Extensions offered by the desktop file dialog
AUDIO_EXTENSIONS = (".wav", ".flac", ".ogg", ".mp3", ".aiff", ".aif")


@dataclass
class DecodedAudio:
    samples: np.ndarray  # mono float64, channel 0 of the source
    sample_rate: int  # Hz

    @property
    def duration(self) -> float:
        """Length in seconds."""
        if self.sample_rate <= 0:
            return 0.0
        return self.samples.size / float(self.sample_rate)


@dataclass
class FileInfo:
    name: str
    size_bytes: int

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "FileInfo":
        p = Path(path)
        return cls(name=p.name, size_bytes=p.stat().st_size)

    @property
    def size_mb(self) -> float:
        return self.size_bytes / 1024 / 1024

    def name_text(self) -> str:
        return f"File: {self.name}"

    def size_text(self) -> str:
        return f"Size: {self.size_mb:.2f} MB"


def decode_audio(source: Source) -> DecodedAudio:
    """Decode an audio file (path or binary stream) to mono samples.

    Integer PCM is scaled to [-1, 1) by libsndfile; multichannel files
    contribute their first channel only.

    Raises:
        DecodeError: the source is missing, truncated or in an unknown format.
    """
    if isinstance(source, Path):
        source = str(source)
    try:
        data, rate = sf.read(source, dtype="float64", always_2d=True)
    except (sf.SoundFileError, RuntimeError, OSError, ValueError, EOFError) as e:
        raise DecodeError(f"cannot decode audio: {e}") from e
    samples = np.ascontiguousarray(data[:, 0])
    logger.debug("decoded %d samples at %d Hz", samples.size, rate)
    return DecodedAudio(samples=samples, sample_rate=int(rate))
