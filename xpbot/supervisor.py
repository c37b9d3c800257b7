"""Task supervision for per-message handlers."""

import asyncio
import logging
from collections import deque
from typing import Coroutine, Deque, List, Optional, Set

logger = logging.getLogger(__name__)

MAX_KEPT_ERRORS = 100


class TaskSupervisor:
    """Runs each unit of work as its own asyncio task.

    Tasks are independent: a failure in one is logged and recorded but never
    touches the others. Only the latest `max_errors` failures are kept;
    `failed` counts all of them. `join()` waits for everything in flight and
    hands back the kept errors.
    """

    def __init__(self, max_errors: int = MAX_KEPT_ERRORS):
        self._tasks: Set[asyncio.Task] = set()
        self.errors: Deque[BaseException] = deque(maxlen=max_errors)
        self.failed = 0
        self.closed = False

    def __len__(self) -> int:
        return len(self._tasks)

    def close(self) -> None:
        """Stop accepting work. Tasks already running are left to finish."""
        self.closed = True

    def spawn(self, coro: Coroutine, name: Optional[str] = None) -> asyncio.Task:
        """Schedule a coroutine and track it until it finishes.

        Raises:
            RuntimeError: if the supervisor was closed
        """
        if self.closed:
            coro.close()
            raise RuntimeError("TaskSupervisor is closed")
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.failed += 1
            self.errors.append(exc)
            logger.error(
                f"Task {task.get_name()} failed: {type(exc).__name__}: {exc}",
                exc_info=exc,
            )

    async def join(self) -> List[BaseException]:
        """Wait for all tracked tasks, including ones spawned meanwhile.

        Returns the errors kept since the last join and clears them.
        """
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        errors = list(self.errors)
        self.errors.clear()
        return errors
