from __future__ import annotations

import os
import re
import signal

from pysay.application.port.process_spawner import ChildProcess
from pysay.domain.vo.utterance import CommandDescriptor, UtteranceRequest
from pysay.infrastructure.platform.base import PlatformCommandBuilder


def scheme_string(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class FestivalCommandBuilder(PlatformCommandBuilder):
    """Festival on Linux.

    Speaking pipes Scheme into `festival --pipe`; exporting pipes plain text
    into `text2wave`. Festival plays through a child `aplay`, so it runs in its
    own process group and control signals go to the whole group.
    """

    name = "festival"
    base_speed = 100
    default_executable = "festival"
    default_export_executable = "text2wave"

    # extension -> (text2wave -otype)
    EXPORT_FORMATS = {
        ".wav": ("riff",),
        ".aiff": ("aiff",),
        ".au": ("snd",),
        ".snd": ("snd",),
    }
    # Voices are Scheme procedures such as voice_kal_diphone.
    VOICE_PATTERN = re.compile(r"[A-Za-z][A-Za-z0-9_]*")

    def __init__(
        self,
        *,
        executable: str | None = None,
        export_executable: str | None = None,
    ) -> None:
        super().__init__(executable=executable)
        self.export_executable = export_executable or self.default_export_executable

    def build_speak_command(self, request: UtteranceRequest) -> CommandDescriptor:
        voice = self.checked_voice(request.voice)

        script: list[str] = []
        if self.has_speed(request.speed):
            engine_speed = self.convert_speed(request.speed)
            audio_command = (
                "aplay -q -c 1 -t raw -f s16 "
                f"-r $(($SR*{engine_speed}/100)) $FILE"
            )
            script.append("(Parameter.set 'Audio_Method 'Audio_Command)")
            script.append(f"(Parameter.set 'Audio_Command {scheme_string(audio_command)})")
        if voice:
            script.append(f"({voice})")
        script.append(f"(SayText {scheme_string(request.text)})")

        return CommandDescriptor(
            executable=self.executable,
            arguments=("--pipe",),
            stdin_payload=" ".join(script) + "\n",
            spawn_options={"start_new_session": True},
        )

    def build_export_command(
        self, request: UtteranceRequest, filename: str
    ) -> CommandDescriptor:
        (otype,) = self.export_format(filename)
        voice = self.checked_voice(request.voice)

        arguments = ["-o", filename, "-otype", otype]
        if voice:
            arguments += ["-eval", f"({voice})"]
        if self.has_speed(request.speed):
            stretch = 100 / self.convert_speed(request.speed)
            arguments += ["-eval", f"(Parameter.set 'Duration_Stretch {stretch:.4f})"]

        return CommandDescriptor(
            executable=self.export_executable,
            arguments=tuple(arguments),
            stdin_payload=request.text,
            spawn_options={"start_new_session": True},
        )

    def run_stop_command(self, handle: ChildProcess) -> None:
        self._signal_group(handle, signal.SIGTERM)

    def run_pause_command(self, handle: ChildProcess) -> None:
        self._signal_group(handle, signal.SIGSTOP)

    def run_resume_command(self, handle: ChildProcess) -> None:
        self._signal_group(handle, signal.SIGCONT)

    @staticmethod
    def _signal_group(handle: ChildProcess, sig: int) -> None:
        try:
            os.killpg(handle.pid, sig)
        except ProcessLookupError:
            pass
