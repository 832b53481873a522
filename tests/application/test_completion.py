"""Unit tests for Completion."""
from __future__ import annotations

import asyncio
import unittest

from pysay.application.completion import Completion
from tests.application.fakes import CallbackRecorder


class TestCompletion(unittest.IsolatedAsyncioTestCase):
    async def test_first_settle_wins(self):
        """Test that only the first result reaches the callback."""
        callback = CallbackRecorder()
        completion = Completion(callback, loop=asyncio.get_running_loop())
        error = RuntimeError("engine failed")

        self.assertTrue(completion.settle(error))
        self.assertFalse(completion.settle(None))
        self.assertFalse(completion.settle(RuntimeError("late")))

        self.assertIs(await callback.wait(), error)
        await asyncio.sleep(0)
        self.assertEqual(callback.calls, [error])
        self.assertTrue(completion.settled)

    async def test_delivery_is_deferred(self):
        callback = CallbackRecorder()
        completion = Completion(callback, loop=asyncio.get_running_loop())

        completion.settle(None)

        self.assertEqual(callback.calls, [])
        await asyncio.sleep(0)
        self.assertEqual(callback.calls, [None])

    async def test_missing_callback_is_allowed(self):
        completion = Completion(None, loop=asyncio.get_running_loop())

        self.assertTrue(completion.settle(None))
        self.assertTrue(completion.settled)


if __name__ == "__main__":
    unittest.main()
