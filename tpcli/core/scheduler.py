import asyncio
from typing import Coroutine

from tpcli.core.logger import get_logger

logger = get_logger(__name__)


class Scheduler:
    """Named background workers (the peer broker) on the running loop"""

    def __init__(self):
        self._workers: dict[str, asyncio.Task] = {}

    def running_tasks(self) -> list[asyncio.Task]:
        return [t for t in self._workers.values() if not t.done()]

    def spawn(self, name: str, coro: Coroutine) -> asyncio.Task:
        if self.has_worker(name):
            coro.close()
            raise RuntimeError(f"Worker '{name}' already running")

        task = asyncio.create_task(coro, name=name)
        self._workers[name] = task
        logger.debug(f"Worker '{name}' started")

        def _cleanup(t: asyncio.Task):
            if self._workers.get(name) is t:
                self._workers.pop(name, None)

            if not t.cancelled() and t.exception() is not None:
                logger.error(f"Worker '{name}' failed: {t.exception()}")

        task.add_done_callback(_cleanup)
        return task

    def has_worker(self, name: str) -> bool:
        task = self._workers.get(name)
        return task is not None and not task.done()

    def stop_worker(self, name: str):
        task = self._workers.get(name)
        if task and not task.done():
            task.cancel()

    async def stop_and_wait(self, name: str, timeout: float | None = None):
        task = self._workers.get(name)
        if not task:
            return

        if not task.done():
            task.cancel()

        try:
            await asyncio.wait_for(task, timeout=timeout)
        except asyncio.CancelledError:
            pass
        except asyncio.TimeoutError:
            logger.warning(f"Worker '{name}' did not stop within {timeout}s")

    async def wait_all(self, timeout: float | None = None) -> list[asyncio.Task]:
        """Wait for running workers, returning the ones still running after timeout"""
        running = self.running_tasks()
        if not running:
            return []

        _, pending = await asyncio.wait(running, timeout=timeout)
        return list(pending)

    async def stop_all(self, timeout: float | None = None):
        for name in list(self._workers):
            await self.stop_and_wait(name, timeout=timeout)
