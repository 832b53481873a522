from __future__ import annotations

from typing import Protocol

from pysay.application.port.process_spawner import ChildProcess
from pysay.domain.vo.utterance import CommandDescriptor, UtteranceRequest


class CommandBuilder(Protocol):
    name: str
    base_speed: int

    def convert_speed(self, speed: float | None) -> int:
        """Return the engine-native rate for a speed multiplier."""
        ...

    def build_speak_command(self, request: UtteranceRequest) -> CommandDescriptor:
        """Return the invocation that speaks `request.text` aloud."""
        ...

    def build_export_command(
        self, request: UtteranceRequest, filename: str
    ) -> CommandDescriptor:
        """Return the invocation that writes the utterance to `filename`."""
        ...

    def run_stop_command(self, handle: ChildProcess) -> None:
        ...

    def run_pause_command(self, handle: ChildProcess) -> None:
        ...

    def run_resume_command(self, handle: ChildProcess) -> None:
        ...
