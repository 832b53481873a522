from __future__ import annotations

import asyncio
import math
import signal
from collections.abc import Callable
from functools import partial

from pysay.application.completion import Completion, SpeechCallback
from pysay.application.errors import (
    AbnormalExitError,
    EngineRuntimeError,
    NoActiveSessionError,
    ParameterError,
    SessionControlError,
    SpawnError,
)
from pysay.application.port.command_builder import CommandBuilder
from pysay.application.port.process_spawner import ChildProcess, ProcessSpawner
from pysay.domain.vo.utterance import CommandDescriptor, UtteranceRequest
from pysay.utils.logger import Logger

ControlAction = Callable[[ChildProcess], None]


def interpret_returncode(returncode: int | None) -> tuple[int | None, str | None]:
    """Split an asyncio return code into (exit code, signal name).

    asyncio reports "killed by signal N" as -N on POSIX.
    """

    if returncode is None:
        return None, None
    if returncode >= 0:
        return returncode, None

    try:
        return None, signal.Signals(-returncode).name
    except ValueError:
        return None, f"SIG{-returncode}"


def _valid_speed(speed: float | None) -> bool:
    if speed is None:
        return True
    if isinstance(speed, bool) or not isinstance(speed, (int, float)):
        return False
    return math.isfinite(speed) and speed >= 0


class _Launch:
    """One speak/export, from the call that started it until the engine exits.

    `child` is None while the spawner is still starting the engine. A control
    action issued in that window is parked in `pending_action` and applied as
    soon as the child exists.
    """

    def __init__(self, operation: str) -> None:
        self.operation = operation
        self.child: ChildProcess | None = None
        self.pending_action: ControlAction | None = None


class SpeechSession:
    """Runs one OS speech engine process at a time.

    Only the most recent speak/export is tracked: starting a new one while
    another is still running replaces the handle, and the earlier process can
    no longer be stopped through this session.
    """

    STDERR_CHUNK_SIZE = 4096

    def __init__(
        self,
        builder: CommandBuilder,
        *,
        spawner: ProcessSpawner,
        logger: Logger | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.builder = builder
        self.spawner = spawner
        self.logger = logger
        self._loop = loop
        self._current: _Launch | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def active_handle(self) -> ChildProcess | None:
        """The running engine process, or None (also while it is starting)."""
        if self._current is None:
            return None
        return self._current.child

    @property
    def is_speaking(self) -> bool:
        return self._current is not None

    def speak(
        self,
        text: str | None,
        voice: str | None = None,
        speed: float | None = None,
        callback: SpeechCallback | None = None,
    ) -> None:
        self._speak(text, voice, speed, callback)

    def export(
        self,
        text: str | None,
        voice: str | None = None,
        speed: float | None = None,
        filename: str | None = None,
        callback: SpeechCallback | None = None,
    ) -> None:
        self._export(text, voice, speed, filename, callback)

    def stop(self, callback: SpeechCallback | None = None) -> None:
        self._control("stop", self.builder.run_stop_command, callback)

    def pause(self, callback: SpeechCallback | None = None) -> None:
        # The handle is dropped after pausing as well, so a later resume() or
        # stop() reports "no speech to kill" while the process is suspended.
        self._control("pause", self.builder.run_pause_command, callback)

    def resume(self, callback: SpeechCallback | None = None) -> None:
        self._control("resume", self.builder.run_resume_command, callback)

    async def speak_async(
        self,
        text: str | None,
        voice: str | None = None,
        speed: float | None = None,
    ) -> None:
        """Speak and wait for the engine to finish; errors are raised.

        Cancelling the coroutine stops the engine, even if it is still being
        started.
        """
        future = self._get_loop().create_future()
        launch = self._speak(text, voice, speed, _future_callback(future))
        await self._wait(future, launch)

    async def export_async(
        self,
        text: str | None,
        voice: str | None = None,
        speed: float | None = None,
        filename: str | None = None,
    ) -> None:
        future = self._get_loop().create_future()
        launch = self._export(text, voice, speed, filename, _future_callback(future))
        await self._wait(future, launch)

    def _speak(
        self,
        text: str | None,
        voice: str | None,
        speed: float | None,
        callback: SpeechCallback | None,
    ) -> _Launch | None:
        completion = Completion(callback, loop=self._get_loop())

        if not text:
            completion.settle(ParameterError("speak(): must provide text parameter"))
            return None
        if not _valid_speed(speed):
            completion.settle(
                ParameterError(f"speak(): speed must be a non-negative number (got {speed!r})")
            )
            return None

        request = UtteranceRequest(text=text, voice=voice, speed=speed)
        descriptor = self._build(
            "speak", lambda: self.builder.build_speak_command(request), completion
        )
        if descriptor is None:
            return None
        return self._launch("speak", descriptor, completion)

    def _export(
        self,
        text: str | None,
        voice: str | None,
        speed: float | None,
        filename: str | None,
        callback: SpeechCallback | None,
    ) -> _Launch | None:
        completion = Completion(callback, loop=self._get_loop())

        if not text:
            completion.settle(ParameterError("export(): must provide text parameter"))
            return None
        if not filename:
            completion.settle(
                ParameterError("export(): must provide filename parameter")
            )
            return None
        if not _valid_speed(speed):
            completion.settle(
                ParameterError(f"export(): speed must be a non-negative number (got {speed!r})")
            )
            return None

        request = UtteranceRequest(
            text=text, voice=voice, speed=speed, destination_file=filename
        )
        descriptor = self._build(
            "export",
            lambda: self.builder.build_export_command(request, filename),
            completion,
        )
        if descriptor is None:
            return None
        return self._launch("export", descriptor, completion)

    async def _wait(self, future: asyncio.Future[None], launch: _Launch | None) -> None:
        try:
            await future
        except asyncio.CancelledError:
            if launch is not None:
                self._abandon(launch)
            raise

    def _abandon(self, launch: _Launch) -> None:
        if self._current is launch:
            self._current = None

        child = launch.child
        if child is None:
            launch.pending_action = self.builder.run_stop_command
            self._log(f"[{self.builder.name}] {launch.operation} cancelled before the engine started")
            return
        if child.returncode is not None:
            return

        try:
            self.builder.run_stop_command(child)
        except OSError as e:
            self._log(f"[{self.builder.name}] could not stop pid={child.pid}: {e}")
            return
        self._log(f"[{self.builder.name}] {launch.operation} cancelled (pid={child.pid})")

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None:
            return self._loop
        return asyncio.get_running_loop()

    def _build(
        self,
        operation: str,
        build: Callable[[], CommandDescriptor],
        completion: Completion,
    ) -> CommandDescriptor | None:
        try:
            return build()
        except (ValueError, ArithmeticError) as e:  # CommandBuildError included
            self._log(f"[{self.builder.name}] {operation}(): cannot build command: {e}")
            completion.settle(e)
            return None

    def _launch(
        self,
        operation: str,
        descriptor: CommandDescriptor,
        completion: Completion,
    ) -> _Launch:
        launch = _Launch(operation)
        self._current = launch

        task = self._get_loop().create_task(self._run(launch, descriptor, completion))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        task.add_done_callback(partial(self._on_run_done, launch, completion))
        return launch

    def _on_run_done(
        self,
        launch: _Launch,
        completion: Completion,
        task: asyncio.Task[None],
    ) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is None:
            return

        self._log(f"[{self.builder.name}] {launch.operation} failed: {error!r}")
        if self._current is launch and launch.child is None:
            self._current = None
        completion.settle(error)

    async def _run(
        self,
        launch: _Launch,
        descriptor: CommandDescriptor,
        completion: Completion,
    ) -> None:
        operation = launch.operation
        try:
            child = await self.spawner.spawn(descriptor)
        except (OSError, ValueError) as e:
            if self._current is launch:
                self._current = None
            self._log(f"[{self.builder.name}] failed to start {descriptor.executable}: {e}")
            completion.settle(
                SpawnError(f"{operation}(): could not start {descriptor.executable}: {e}")
            )
            return

        launch.child = child
        self._log(f"[{self.builder.name}] {operation} started (pid={child.pid})")
        if launch.pending_action is not None:
            self._apply_pending(launch, child)

        # Drain stderr while stdin is written so neither pipe can fill up
        # and block the other.
        stderr_task = asyncio.ensure_future(
            self._watch_stderr(operation, child, completion)
        )
        if descriptor.stdin_payload:
            await self._feed_stdin(child, descriptor)

        returncode = await child.wait()
        # Let the stderr watcher see everything the engine wrote before exit.
        await stderr_task

        code, signal_name = interpret_returncode(returncode)
        if code is None or signal_name is not None:
            self._log(
                f"[{self.builder.name}] {operation} exited abnormally "
                f"(code={code}, signal={signal_name})"
            )
            completion.settle(
                AbnormalExitError(
                    f"{operation}(): could not talk, had an error "
                    f"[code: {code}] [signal: {signal_name}]",
                    code=code,
                    signal=signal_name,
                )
            )
            return

        # Cleared even when a newer utterance has taken over the handle.
        self._current = None
        self._log(f"[{self.builder.name}] {operation} finished (code={code})")
        completion.settle(None)

    def _apply_pending(self, launch: _Launch, child: ChildProcess) -> None:
        action, launch.pending_action = launch.pending_action, None
        try:
            action(child)
        except OSError as e:
            self._log(f"[{self.builder.name}] deferred control failed (pid={child.pid}): {e}")
            return
        self._log(f"[{self.builder.name}] deferred control applied (pid={child.pid})")

    async def _feed_stdin(self, child: ChildProcess, descriptor: CommandDescriptor) -> None:
        if child.stdin is None:
            return
        try:
            child.stdin.write(descriptor.encoded_payload())
            await child.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            # The engine went away early; its exit status is reported instead.
            self._log(f"[{self.builder.name}] could not write to stdin: {e}")
        finally:
            child.stdin.close()

    async def _watch_stderr(
        self,
        operation: str,
        child: ChildProcess,
        completion: Completion,
    ) -> None:
        if child.stderr is None:
            return

        data = await child.stderr.read(self.STDERR_CHUNK_SIZE)
        if not data:
            return

        message = data.decode("ascii", errors="replace").strip()
        self._log(f"[{self.builder.name}] {operation} engine error: {message}")
        completion.settle(EngineRuntimeError(message))

        # Keep draining so a chatty engine never blocks on a full pipe.
        while await child.stderr.read(self.STDERR_CHUNK_SIZE):
            pass

    def _control(
        self,
        operation: str,
        action: ControlAction,
        callback: SpeechCallback | None,
    ) -> None:
        completion = Completion(callback, loop=self._get_loop())

        launch = self._current
        if launch is None:
            completion.settle(NoActiveSessionError(f"{operation}(): no speech to kill"))
            return

        child = launch.child
        if child is None:
            # Still spawning: the action runs as soon as the engine exists.
            launch.pending_action = action
            self._current = None
            self._log(f"[{self.builder.name}] {operation} (engine still starting)")
            completion.settle(None)
            return

        try:
            action(child)
        except OSError as e:
            self._log(f"[{self.builder.name}] {operation} failed (pid={child.pid}): {e}")
            completion.settle(SessionControlError(f"{operation}(): {e}"))
            return

        self._current = None
        self._log(f"[{self.builder.name}] {operation} (pid={child.pid})")
        completion.settle(None)

    def _log(self, message: str) -> None:
        if self.logger:
            self.logger.log(message)


def _future_callback(future: asyncio.Future[None]) -> SpeechCallback:
    def _deliver(error: BaseException | None) -> None:
        if future.done():
            return
        if error is None:
            future.set_result(None)
        else:
            future.set_exception(error)

    return _deliver
