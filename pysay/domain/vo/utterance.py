from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class UtteranceRequest:
    text: str
    voice: str | None = None
    speed: float | None = None
    # Only set for export requests.
    destination_file: str | None = None


@dataclass(frozen=True)
class CommandDescriptor:
    """How to run one engine invocation.

    `spawn_options` are passed through to the process spawner untouched
    (for example `start_new_session`).
    """

    executable: str
    arguments: tuple[str, ...] = ()
    stdin_payload: str | None = None
    spawn_options: dict[str, Any] = field(default_factory=dict)
    stdin_encoding: str = "ascii"

    @property
    def argv(self) -> list[str]:
        return [self.executable, *self.arguments]

    def encoded_payload(self) -> bytes:
        if not self.stdin_payload:
            return b""
        return self.stdin_payload.encode(self.stdin_encoding, errors="replace")
