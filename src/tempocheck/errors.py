"""Exception types raised by tempocheck."""

from __future__ import annotations


class TempoError(Exception):
    """Base class for all tempocheck errors."""


class InvalidInput(TempoError, ValueError):
    """Sample buffer or sample rate cannot be analysed."""


class InvalidArgument(TempoError, ValueError):
    """A pipeline parameter is outside its valid domain."""


class DecodeError(TempoError):
    """Audio source could not be decoded into samples."""


class AnalysisBusy(TempoError, RuntimeError):
    """Another analysis is already running in this session."""
