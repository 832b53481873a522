from __future__ import annotations

import asyncio
from asyncio.subprocess import Process

from pysay.domain.vo.utterance import CommandDescriptor


class AsyncioProcessSpawner:
    """Starts engine processes on the running asyncio loop.

    stdout is discarded; stdin is only piped when the command has a payload.
    """

    async def spawn(self, descriptor: CommandDescriptor) -> Process:
        stdin = asyncio.subprocess.PIPE if descriptor.stdin_payload else asyncio.subprocess.DEVNULL

        return await asyncio.create_subprocess_exec(
            descriptor.executable,
            *descriptor.arguments,
            stdin=stdin,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
            **descriptor.spawn_options,
        )
