from __future__ import annotations

import asyncio
from collections.abc import Callable

SpeechCallback = Callable[[BaseException | None], None]


class Completion:
    """One-shot delivery of a result to a speech callback.

    The first `settle()` wins; later calls (for example an exit event after
    stderr already reported a failure) are ignored. Delivery is always
    scheduled on the loop, never run inside the caller's stack.
    """

    def __init__(
        self,
        callback: SpeechCallback | None,
        *,
        loop: asyncio.AbstractEventLoop,
    ) -> None:
        self._callback = callback
        self._loop = loop
        self._settled = False

    @property
    def settled(self) -> bool:
        return self._settled

    def settle(self, error: BaseException | None = None) -> bool:
        if self._settled:
            return False
        self._settled = True

        if self._callback is not None:
            self._loop.call_soon(self._callback, error)
        return True
