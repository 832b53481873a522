"""
Command builder factory.

Picks the speech engine for this machine, or the one named in configuration.
"""

from __future__ import annotations

import platform

from pysay.infrastructure.platform.base import PlatformCommandBuilder

ENGINES = ("say", "festival", "espeak", "sapi")


def get_platform() -> str:
    """Return 'windows', 'macos' or 'linux' for the running OS."""
    system = platform.system()
    if system == "Windows":
        return "windows"
    elif system == "Darwin":
        return "macos"
    else:
        return "linux"


def default_engine() -> str:
    return {"macos": "say", "windows": "sapi"}.get(get_platform(), "festival")


def create_command_builder(
    engine: str | None = None,
    *,
    executable: str | None = None,
) -> PlatformCommandBuilder:
    """Create the command builder for `engine` (auto-detected when None).

    Raises:
        ValueError: If engine is unknown
    """
    engine = (engine or default_engine()).lower()

    if engine == "say":
        from pysay.infrastructure.platform.macos import MacOSCommandBuilder

        return MacOSCommandBuilder(executable=executable)

    elif engine == "festival":
        from pysay.infrastructure.platform.festival import FestivalCommandBuilder

        return FestivalCommandBuilder(executable=executable)

    elif engine == "espeak":
        from pysay.infrastructure.platform.espeak import EspeakCommandBuilder

        return EspeakCommandBuilder(executable=executable)

    elif engine == "sapi":
        from pysay.infrastructure.platform.windows import WindowsCommandBuilder

        return WindowsCommandBuilder(executable=executable)

    else:
        raise ValueError(
            f"Unknown speech engine: {engine} (expected one of: {', '.join(ENGINES)})"
        )
