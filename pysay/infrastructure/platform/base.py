"""
Shared behaviour for OS speech engine command builders.

Builders are pure: they turn an utterance into a CommandDescriptor and never
start processes themselves. The only side effects live in the stop/pause/resume
actions, which act on an already running process.
"""

from __future__ import annotations

import math
import re
import signal
from abc import ABC, abstractmethod
from pathlib import PurePath

from pysay.application.errors import CommandBuildError
from pysay.application.port.process_spawner import ChildProcess
from pysay.domain.vo.utterance import CommandDescriptor, UtteranceRequest


class PlatformCommandBuilder(ABC):
    """Base class for one OS speech engine."""

    name: str = "base"
    base_speed: int = 0
    default_executable: str = ""

    # Lower-cased file extension -> engine-specific format settings.
    EXPORT_FORMATS: dict[str, tuple[str, ...]] = {}
    VOICE_PATTERN: re.Pattern[str] | None = None

    def __init__(self, *, executable: str | None = None) -> None:
        self.executable = executable or self.default_executable

    def convert_speed(self, speed: float | None) -> int:
        """Return the engine rate for a speed multiplier.

        Rounds up so small multipliers never truncate to zero. A missing or
        zero multiplier means normal speed.
        """

        if not speed or speed <= 0:
            speed = 1.0
        return math.ceil(self.base_speed * speed)

    @staticmethod
    def has_speed(speed: float | None) -> bool:
        return bool(speed) and speed > 0

    @abstractmethod
    def build_speak_command(self, request: UtteranceRequest) -> CommandDescriptor:
        ...

    @abstractmethod
    def build_export_command(
        self, request: UtteranceRequest, filename: str
    ) -> CommandDescriptor:
        ...

    def run_stop_command(self, handle: ChildProcess) -> None:
        self._send_signal(handle, signal.SIGTERM)

    def run_pause_command(self, handle: ChildProcess) -> None:
        self._send_signal(handle, signal.SIGSTOP)

    def run_resume_command(self, handle: ChildProcess) -> None:
        self._send_signal(handle, signal.SIGCONT)

    def export_format(self, filename: str) -> tuple[str, ...]:
        suffix = PurePath(filename).suffix.lower()
        try:
            return self.EXPORT_FORMATS[suffix]
        except KeyError:
            supported = ", ".join(sorted(self.EXPORT_FORMATS)) or "none"
            raise CommandBuildError(
                f"{self.name}: cannot export to '{filename}' "
                f"(unsupported extension '{suffix or '<none>'}'; supported: {supported})"
            ) from None

    def checked_voice(self, voice: str | None) -> str | None:
        if not voice:
            return None
        if self.VOICE_PATTERN is not None and not self.VOICE_PATTERN.fullmatch(voice):
            raise CommandBuildError(f"{self.name}: unsupported voice '{voice}'")
        return voice

    @staticmethod
    def _send_signal(handle: ChildProcess, sig: int) -> None:
        try:
            handle.send_signal(sig)
        except ProcessLookupError:
            # Already exited.
            pass
