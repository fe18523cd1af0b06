"""Host-owned context: the single active-flow slot and the loop flows run on."""

import asyncio
import logging
from typing import Any, Optional, Set

log = logging.getLogger(__name__)


class FlowContext:
    """Confines every flow to one event loop and tracks the presented flow.

    All orchestrator and coordinator state is touched only from callbacks and
    tasks running on ``loop``. Blocking network calls go to the loop's default
    executor and hand their result back to the loop.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.loop = loop or asyncio.new_event_loop()
        self.active_flow: Optional[Any] = None
        self._tasks: Set[asyncio.Task] = set()

    def spawn(self, coro) -> asyncio.Task:
        task = self.loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def has_pending(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def run_pending(self) -> None:
        """Drive the loop until every spawned task has finished.

        Tasks spawned while draining are picked up as well. The first
        exception raised inside a task is re-raised here.
        """
        while self._tasks:
            pending = set(self._tasks)
            self.loop.run_until_complete(asyncio.wait(pending))
            for task in pending:
                self._tasks.discard(task)
                if task.cancelled():
                    continue
                error = task.exception()
                if error is not None:
                    raise error

    def close(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            self.loop.run_until_complete(asyncio.wait(set(self._tasks)))
            self._tasks.clear()
        self.loop.run_until_complete(self.loop.shutdown_default_executor())
        self.loop.close()
        log.debug("Flow context closed")
