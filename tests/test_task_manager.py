"""Tests for the TaskManager lifecycle helper."""

from __future__ import annotations

import asyncio
import unittest

from groq_chat.task_manager import TaskManager


class TaskManagerTests(unittest.IsolatedAsyncioTestCase):
    """Validate spawn, tracking and cancellation of background tasks."""

    async def test_spawn_and_cancel_all(self) -> None:
        tm = TaskManager()
        cancelled: list[bool] = []

        async def _worker() -> None:
            try:
                await asyncio.sleep(9999)
            except asyncio.CancelledError:
                cancelled.append(True)
                raise

        task = tm.spawn(_worker(), name="worker")
        await asyncio.sleep(0)  # Let the task start.
        self.assertEqual(len(tm), 1)
        await tm.cancel_all()
        self.assertTrue(task.done())
        self.assertTrue(cancelled)
        self.assertEqual(len(tm), 0)

    async def test_finished_tasks_are_discarded(self) -> None:
        tm = TaskManager()
        task = tm.spawn(asyncio.sleep(0))
        await task
        await asyncio.sleep(0)
        self.assertEqual(len(tm), 0)

    async def test_failed_task_exception_is_logged(self) -> None:
        tm = TaskManager()

        async def _boom() -> None:
            raise ValueError("nope")

        with self.assertLogs("groq_chat.task_manager", level="WARNING") as logs:
            tm.spawn(_boom(), name="boom")
            await tm.await_all()
            await asyncio.sleep(0)
        self.assertTrue(any("task.exception" in line for line in logs.output))

    async def test_await_all_includes_tasks_spawned_meanwhile(self) -> None:
        tm = TaskManager()
        done: list[str] = []

        async def _child() -> None:
            await asyncio.sleep(0)
            done.append("child")

        async def _parent() -> None:
            tm.spawn(_child())
            done.append("parent")

        tm.spawn(_parent())
        await tm.await_all()
        self.assertEqual(done, ["parent", "child"])


if __name__ == "__main__":
    unittest.main()
