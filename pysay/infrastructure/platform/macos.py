from __future__ import annotations

from pysay.domain.vo.utterance import CommandDescriptor, UtteranceRequest
from pysay.infrastructure.platform.base import PlatformCommandBuilder


class MacOSCommandBuilder(PlatformCommandBuilder):
    """macOS `say`. Rate is in words per minute."""

    name = "say"
    base_speed = 175
    default_executable = "say"

    # extension -> (--file-format, --data-format)
    EXPORT_FORMATS = {
        ".aiff": ("AIFF", "BEI16@22050"),
        ".aif": ("AIFF", "BEI16@22050"),
        ".aifc": ("AIFC", "BEI16@22050"),
        ".caf": ("caff", "LEF32@32000"),
        ".m4a": ("m4af", "aac"),
        ".wav": ("WAVE", "LEI16@22050"),
    }

    def build_speak_command(self, request: UtteranceRequest) -> CommandDescriptor:
        return CommandDescriptor(
            executable=self.executable,
            arguments=tuple(self._base_arguments(request)),
        )

    def build_export_command(
        self, request: UtteranceRequest, filename: str
    ) -> CommandDescriptor:
        file_format, data_format = self.export_format(filename)

        arguments = self._base_arguments(request)
        arguments += [
            "-o",
            filename,
            f"--file-format={file_format}",
            f"--data-format={data_format}",
        ]
        return CommandDescriptor(
            executable=self.executable,
            arguments=tuple(arguments),
        )

    def _base_arguments(self, request: UtteranceRequest) -> list[str]:
        arguments: list[str] = []
        if request.voice:
            arguments += ["-v", request.voice]
        if self.has_speed(request.speed):
            arguments += ["-r", str(self.convert_speed(request.speed))]
        # "--" so text starting with a dash is not read as an option.
        arguments += ["--", request.text]
        return arguments
