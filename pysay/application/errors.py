from __future__ import annotations


class SpeechError(RuntimeError):
    """Base class for every error delivered to a speech callback."""


class ParameterError(SpeechError, TypeError):
    """Raised when a required input (text, filename) is missing or invalid."""


class CommandBuildError(SpeechError, ValueError):
    """Raised when an engine cannot build a command for the request."""


class EngineRuntimeError(SpeechError):
    """Raised when the engine wrote to its diagnostic stream."""


class AbnormalExitError(SpeechError):
    """Raised when the engine exited without a code or because of a signal."""

    def __init__(self, message: str, *, code: int | None, signal: str | None):
        super().__init__(message)
        self.code = code
        self.signal = signal


class NoActiveSessionError(SpeechError):
    """Raised when stop/pause/resume is called with nothing playing."""


class SpawnError(SpeechError):
    """Raised when the engine executable could not be started."""


class SessionControlError(SpeechError):
    """Raised when a stop/pause/resume action failed at the OS level."""
