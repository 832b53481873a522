"""SpeechSession against real child processes (a Python interpreter as the engine)."""
from __future__ import annotations

import asyncio
import os
import sys
import tempfile
import unittest
from pathlib import Path

from pysay.application.errors import (
    AbnormalExitError,
    EngineRuntimeError,
    SpawnError,
)
from pysay.application.speech_session import SpeechSession
from pysay.domain.vo.utterance import CommandDescriptor, UtteranceRequest
from pysay.infrastructure.platform.base import PlatformCommandBuilder
from pysay.infrastructure.platform.macos import MacOSCommandBuilder
from pysay.infrastructure.process.asyncio_spawner import AsyncioProcessSpawner
from tests.application.fakes import CallbackRecorder

READ_STDIN = "import sys; sys.stdin.read()"
WRITE_STDIN_TO_FILE = (
    "import sys; open(sys.argv[1], 'w', encoding='utf-8').write(sys.stdin.read())"
)


class PythonEngineBuilder(PlatformCommandBuilder):
    """Uses the current interpreter as a stand-in speech engine."""

    name = "python"
    base_speed = 100
    EXPORT_FORMATS = {".txt": ("text",)}

    def __init__(self, script: str = READ_STDIN, *, executable: str | None = None):
        super().__init__(executable=executable or sys.executable)
        self.script = script

    def build_speak_command(self, request: UtteranceRequest) -> CommandDescriptor:
        return CommandDescriptor(
            executable=self.executable,
            arguments=("-c", self.script),
            stdin_payload=request.text,
        )

    def build_export_command(
        self, request: UtteranceRequest, filename: str
    ) -> CommandDescriptor:
        self.export_format(filename)
        return CommandDescriptor(
            executable=self.executable,
            arguments=("-c", WRITE_STDIN_TO_FILE, filename),
            stdin_payload=request.text,
        )


class TestSpeechSessionProcess(unittest.IsolatedAsyncioTestCase):
    """End-to-end tests using AsyncioProcessSpawner."""

    TIMEOUT = 20.0

    def _session(self, builder: PlatformCommandBuilder) -> SpeechSession:
        return SpeechSession(builder, spawner=AsyncioProcessSpawner())

    async def test_engine_exiting_cleanly_reports_success(self):
        session = self._session(PythonEngineBuilder())
        callback = CallbackRecorder()

        session.speak("hello world", None, 1.0, callback)

        self.assertIsNone(await callback.wait(self.TIMEOUT))
        self.assertIsNone(session.active_handle)
        self.assertEqual(callback.calls, [None])

    async def test_export_writes_destination_file(self):
        session = self._session(PythonEngineBuilder())

        with tempfile.TemporaryDirectory() as tmp:
            target = Path(tmp) / "greeting.txt"
            await asyncio.wait_for(
                session.export_async("hello there", filename=str(target)),
                self.TIMEOUT,
            )

            self.assertEqual(target.read_text(encoding="utf-8"), "hello there")

    async def test_engine_stderr_is_reported(self):
        script = (
            "import sys; sys.stdin.read(); "
            "sys.stderr.write('engine failed'); sys.stderr.flush()"
        )
        session = self._session(PythonEngineBuilder(script))
        callback = CallbackRecorder()

        session.speak("hello", callback=callback)

        error = await callback.wait(self.TIMEOUT)
        self.assertIsInstance(error, EngineRuntimeError)
        self.assertIn("engine failed", str(error))

        await asyncio.sleep(0.2)
        self.assertEqual(len(callback.calls), 1)

    async def test_missing_executable_is_spawn_error(self):
        missing = os.path.join(tempfile.gettempdir(), "pysay-no-such-engine")
        session = self._session(PythonEngineBuilder(executable=missing))
        callback = CallbackRecorder()

        session.speak("hello", callback=callback)

        self.assertIsInstance(await callback.wait(self.TIMEOUT), SpawnError)
        self.assertIsNone(session.active_handle)

    @unittest.skipIf(sys.platform == "win32", "POSIX signals")
    async def test_engine_killed_by_signal_reports_signal(self):
        script = "import os, signal, sys; sys.stdin.read(); os.kill(os.getpid(), signal.SIGTERM)"
        session = self._session(PythonEngineBuilder(script))
        callback = CallbackRecorder()

        session.speak("hello", callback=callback)

        error = await callback.wait(self.TIMEOUT)
        self.assertIsInstance(error, AbnormalExitError)
        self.assertEqual(error.signal, "SIGTERM")
        self.assertIsNone(error.code)

    @unittest.skipIf(sys.platform == "win32", "POSIX signals")
    async def test_stop_terminates_running_engine(self):
        session = self._session(
            PythonEngineBuilder("import sys, time; sys.stdin.read(); time.sleep(30)")
        )
        speak_callback = CallbackRecorder()
        stop_callback = CallbackRecorder()

        session.speak("hello", callback=speak_callback)

        async def _running():
            while session.active_handle is None:
                await asyncio.sleep(0.01)

        await asyncio.wait_for(_running(), self.TIMEOUT)
        session.stop(stop_callback)

        self.assertIsNone(await stop_callback.wait(self.TIMEOUT))
        self.assertIsNone(session.active_handle)

        error = await speak_callback.wait(self.TIMEOUT)
        self.assertIsInstance(error, AbnormalExitError)
        self.assertEqual(error.signal, "SIGTERM")

    async def test_nul_byte_in_arguments_is_spawn_error(self):
        session = self._session(MacOSCommandBuilder(executable=sys.executable))
        callback = CallbackRecorder()

        session.speak("hel\x00lo", callback=callback)

        self.assertIsInstance(await callback.wait(self.TIMEOUT), SpawnError)
        self.assertFalse(session.is_speaking)

    async def test_engine_flooding_stderr_does_not_block_stdin(self):
        script = (
            "import sys; sys.stderr.write('x' * 200000); sys.stderr.flush(); "
            "sys.stdin.read()"
        )
        session = self._session(PythonEngineBuilder(script))
        callback = CallbackRecorder()

        session.speak("a" * 200000, callback=callback)

        self.assertIsInstance(await callback.wait(self.TIMEOUT), EngineRuntimeError)

        async def _finished():
            while session.is_speaking:
                await asyncio.sleep(0.01)

        await asyncio.wait_for(_finished(), self.TIMEOUT)
        self.assertEqual(len(callback.calls), 1)

    @unittest.skipIf(sys.platform == "win32", "POSIX signals")
    async def test_stop_in_same_tick_as_speak_terminates_engine(self):
        session = self._session(
            PythonEngineBuilder("import sys, time; sys.stdin.read(); time.sleep(30)")
        )
        speak_callback = CallbackRecorder()
        stop_callback = CallbackRecorder()

        session.speak("hello", callback=speak_callback)
        session.stop(stop_callback)

        self.assertIsNone(await stop_callback.wait(self.TIMEOUT))
        error = await speak_callback.wait(self.TIMEOUT)
        self.assertIsInstance(error, AbnormalExitError)
        self.assertEqual(error.signal, "SIGTERM")
        self.assertIsNone(session.active_handle)


if __name__ == "__main__":
    unittest.main()
