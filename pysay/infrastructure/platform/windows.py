from __future__ import annotations

import subprocess

import psutil

from pysay.application.port.process_spawner import ChildProcess
from pysay.domain.vo.utterance import CommandDescriptor, UtteranceRequest
from pysay.infrastructure.platform.base import PlatformCommandBuilder


def powershell_quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


class WindowsCommandBuilder(PlatformCommandBuilder):
    """System.Speech through PowerShell.

    The text is piped on stdin so it never has to be quoted into the script.
    SpeechSynthesizer.Rate runs from -10 to 10 with 0 as normal; with a base
    speed of 10 the multiplier maps to `ceil(10 * speed) - 10`.
    """

    name = "sapi"
    base_speed = 10
    default_executable = "powershell"

    EXPORT_FORMATS = {".wav": ("wav",)}

    MIN_RATE = -10
    MAX_RATE = 10

    def build_speak_command(self, request: UtteranceRequest) -> CommandDescriptor:
        return self._descriptor(request, self._script(request))

    def build_export_command(
        self, request: UtteranceRequest, filename: str
    ) -> CommandDescriptor:
        self.export_format(filename)
        return self._descriptor(request, self._script(request, filename=filename))

    def sapi_rate(self, speed: float | None) -> int:
        rate = self.convert_speed(speed) - self.base_speed
        return max(self.MIN_RATE, min(self.MAX_RATE, rate))

    def run_stop_command(self, handle: ChildProcess) -> None:
        # taskkill fails quietly (non-zero exit) when the pid is already gone.
        subprocess.Popen(
            ["taskkill", "/pid", str(handle.pid), "/T", "/F"],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )

    def run_pause_command(self, handle: ChildProcess) -> None:
        self._apply_to_tree(handle, "suspend")

    def run_resume_command(self, handle: ChildProcess) -> None:
        self._apply_to_tree(handle, "resume")

    def _apply_to_tree(self, handle: ChildProcess, method: str) -> None:
        # psutil errors are not OSErrors; re-raise them as such so callers see
        # a failed control action rather than an unknown exception.
        try:
            for process in self._process_tree(handle):
                try:
                    getattr(process, method)()
                except psutil.NoSuchProcess:
                    continue
        except psutil.AccessDenied as e:
            raise PermissionError(f"cannot {method} pid {handle.pid}: {e}") from e
        except psutil.Error as e:
            raise OSError(f"cannot {method} pid {handle.pid}: {e}") from e

    @staticmethod
    def _process_tree(handle: ChildProcess) -> list[psutil.Process]:
        try:
            root = psutil.Process(handle.pid)
            return [root, *root.children(recursive=True)]
        except psutil.NoSuchProcess:
            return []

    def _script(self, request: UtteranceRequest, *, filename: str | None = None) -> str:
        lines = [
            "$ErrorActionPreference = 'Stop'",
            "[Console]::InputEncoding = [System.Text.Encoding]::UTF8",
            "Add-Type -AssemblyName System.Speech",
            "$speak = New-Object System.Speech.Synthesis.SpeechSynthesizer",
        ]
        if request.voice:
            lines.append(f"$speak.SelectVoice({powershell_quote(request.voice)})")
        if self.has_speed(request.speed):
            lines.append(f"$speak.Rate = {self.sapi_rate(request.speed)}")
        if filename:
            lines.append(f"$speak.SetOutputToWaveFile({powershell_quote(filename)})")
        lines.append("$speak.Speak([Console]::In.ReadToEnd())")
        lines.append("$speak.Dispose()")
        return "; ".join(lines)

    def _descriptor(self, request: UtteranceRequest, script: str) -> CommandDescriptor:
        return CommandDescriptor(
            executable=self.executable,
            arguments=("-NoProfile", "-NonInteractive", "-Command", script),
            stdin_payload=request.text,
            stdin_encoding="utf-8",
        )
