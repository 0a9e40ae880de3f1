"""Restartable asynchronous tasks.

A restartable task keeps at most one logically active invocation: performing
it again cancels the pending previous invocation and bumps a generation
counter. Task bodies receive a ``TaskToken`` and must only commit results to
shared state while ``token.is_current`` is true.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class TaskToken:
    __slots__ = ("_task", "generation")

    def __init__(self, task: "RestartableTask", generation: int) -> None:
        self._task = task
        self.generation = generation

    @property
    def is_current(self) -> bool:
        return self._task.generation == self.generation


class RestartableTask:
    def __init__(self, fn: Callable[..., Awaitable[Any]], *, name: str) -> None:
        self._fn = fn
        self.name = name
        self.generation = 0
        self.perform_count = 0
        self._current: Optional[asyncio.Task] = None

    @property
    def current(self) -> Optional[asyncio.Task]:
        return self._current

    @property
    def is_running(self) -> bool:
        return self._current is not None and not self._current.done()

    def perform(self, *args: Any, **kwargs: Any) -> asyncio.Task:
        """Schedule a new invocation on the running loop and return its task.

        Raises RuntimeError when called outside a running event loop.
        """
        loop = asyncio.get_running_loop()
        if self.is_running:
            logger.debug("task_restart name=%s generation=%s", self.name, self.generation)
            self._current.cancel()
        self.generation += 1
        self.perform_count += 1
        token = TaskToken(self, self.generation)
        self._current = loop.create_task(self._fn(token, *args, **kwargs), name=f"{self.name}#{self.generation}")
        return self._current


__all__ = ["TaskToken", "RestartableTask"]
