"""One-shot readiness barrier awaited by every request before dispatch."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from apollo_asgi.errors import StartupError
from apollo_asgi.logging import get_logger

logger = get_logger(__name__)


class ReadinessGate:
    """Runs the engine warm-up exactly once and lets many requests wait on it.

    The warm-up is kicked off by ``start()`` as soon as an event loop is
    running, so it can finish before the first request arrives. When the
    gate is constructed outside a loop (e.g. at import time before
    uvicorn starts), the first ``start()`` or ``wait()`` inside the loop
    launches it instead.

    Usage::

        gate = ReadinessGate(server.will_start)
        gate.start()

        # In every request:
        await gate.wait()

    A failed warm-up is fatal: every waiter, present and future, gets
    the same StartupError.
    """

    def __init__(self, warm_up: Callable[[], Awaitable[None]]) -> None:
        self._warm_up = warm_up
        self._task: asyncio.Task[None] | None = None

    @property
    def started(self) -> bool:
        return self._task is not None

    @property
    def is_ready(self) -> bool:
        """Whether the warm-up finished successfully."""
        return (
            self._task is not None
            and self._task.done()
            and not self._task.cancelled()
            and self._task.exception() is None
        )

    def start(self) -> bool:
        """Launch the warm-up if it is not running yet.

        Returns False when no event loop is running, in which case the
        launch is deferred to the first call made inside a loop.
        """
        if self._task is not None:
            return True
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return False
        self._task = loop.create_task(self._run())
        return True

    async def wait(self) -> None:
        self.start()
        assert self._task is not None
        # shield: a cancelled request must not cancel the shared warm-up
        await asyncio.shield(self._task)

    async def _run(self) -> None:
        logger.info("startup.begin")
        try:
            await self._warm_up()
        except Exception as e:
            logger.error("startup.failed", error=str(e))
            raise StartupError(f"Server failed to start: {e}") from e
        logger.info("startup.complete")
