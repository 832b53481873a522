from __future__ import annotations

import asyncio
from threading import Event

from PySide6.QtCore import QThread, Signal

from pysay.application.speech_session import SpeechSession
from pysay.utils.logger import Logger


class SessionWorker(QThread):
    """Runs the speech session's event loop off the UI thread."""

    log = Signal(str)
    operation_finished = Signal(str, str)

    def __init__(self, session: SpeechSession, logger: Logger):
        super().__init__()
        self.session = session
        self._loop: asyncio.AbstractEventLoop | None = None
        self._ready = Event()

        logger.on_emit = self.log.emit

    def run(self) -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        self._loop = loop
        self._ready.set()
        try:
            loop.run_forever()
        finally:
            loop.close()

    def speak(self, text: str, voice: str | None, speed: float | None) -> None:
        self._submit(self.session.speak, text, voice, speed, self._reporter("speak"))

    def export(self, text: str, voice: str | None, speed: float | None, filename: str) -> None:
        self._submit(
            self.session.export, text, voice, speed, filename, self._reporter("export")
        )

    def stop(self) -> None:
        self._submit(self.session.stop, self._reporter("stop"))

    def pause(self) -> None:
        self._submit(self.session.pause, self._reporter("pause"))

    def resume(self) -> None:
        self._submit(self.session.resume, self._reporter("resume"))

    def shutdown(self) -> None:
        if self._loop is not None:
            self._loop.call_soon_threadsafe(self._loop.stop)
        self.wait(2000)

    def _submit(self, fn, *args) -> None:
        self._ready.wait()
        assert self._loop is not None
        self._loop.call_soon_threadsafe(fn, *args)

    def _reporter(self, operation: str):
        def _report(error: BaseException | None) -> None:
            self.operation_finished.emit(operation, str(error) if error else "")

        return _report
