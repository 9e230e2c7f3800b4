"""Onset-based tempo (BPM) detection for decoded audio."""

from .detector import TempoParams, TempoResult, analyze, detect_bpm
from .errors import (
    AnalysisBusy,
    DecodeError,
    InvalidArgument,
    InvalidInput,
    TempoError,
)

__all__ = [
    "TempoParams",
    "TempoResult",
    "analyze",
    "detect_bpm",
    "TempoError",
    "InvalidInput",
    "InvalidArgument",
    "DecodeError",
    "AnalysisBusy",
]

__version__ = "0.1.0"
