from __future__ import annotations

import re

from pysay.domain.vo.utterance import CommandDescriptor, UtteranceRequest
from pysay.infrastructure.platform.base import PlatformCommandBuilder


class EspeakCommandBuilder(PlatformCommandBuilder):
    """espeak-ng, reading text from stdin. Rate is in words per minute."""

    name = "espeak"
    base_speed = 175
    default_executable = "espeak-ng"

    EXPORT_FORMATS = {".wav": ("wav",)}
    # e.g. "en", "en-us", "en-us+f3", "mb-en1"
    VOICE_PATTERN = re.compile(r"[A-Za-z0-9_.+-]+")

    def build_speak_command(self, request: UtteranceRequest) -> CommandDescriptor:
        return CommandDescriptor(
            executable=self.executable,
            arguments=tuple(self._base_arguments(request)),
            stdin_payload=request.text,
            stdin_encoding="utf-8",
        )

    def build_export_command(
        self, request: UtteranceRequest, filename: str
    ) -> CommandDescriptor:
        self.export_format(filename)

        arguments = self._base_arguments(request)
        arguments[-1:-1] = ["-w", filename]
        return CommandDescriptor(
            executable=self.executable,
            arguments=tuple(arguments),
            stdin_payload=request.text,
            stdin_encoding="utf-8",
        )

    def _base_arguments(self, request: UtteranceRequest) -> list[str]:
        arguments: list[str] = []
        voice = self.checked_voice(request.voice)
        if voice:
            arguments += ["-v", voice]
        if self.has_speed(request.speed):
            arguments += ["-s", str(self.convert_speed(request.speed))]
        arguments.append("--stdin")
        return arguments
