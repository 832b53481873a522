from __future__ import annotations

from typing import Protocol

from pysay.domain.vo.utterance import CommandDescriptor


class StdinStream(Protocol):
    def write(self, data: bytes) -> None: ...

    async def drain(self) -> None: ...

    def close(self) -> None: ...


class StderrStream(Protocol):
    async def read(self, n: int = -1) -> bytes: ...


class ChildProcess(Protocol):
    pid: int
    returncode: int | None
    stdin: StdinStream | None
    stderr: StderrStream | None

    async def wait(self) -> int: ...

    def send_signal(self, sig: int) -> None: ...


class ProcessSpawner(Protocol):
    async def spawn(self, descriptor: CommandDescriptor) -> ChildProcess:
        """Start the described process with stdin/stderr piped as needed."""
        ...
