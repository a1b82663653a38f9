"""Deployment admission queue.

Serialises pipeline executions against the shared working tree: tasks are
admitted in FIFO order and at most ``capacity`` of them run at once.
"""

import asyncio
from collections import deque
from datetime import datetime
from typing import Awaitable, Callable

from storedeploy.config import settings
from storedeploy.core.exceptions import QueueClosedError
from storedeploy.models.deployment import (
    DeploymentRequest,
    DeploymentResult,
    DeploymentTask,
    QueueStatus,
    TaskStatus,
)
from storedeploy.utils.logging import get_logger

Executor = Callable[[DeploymentTask], Awaitable[DeploymentResult]]


class DeploymentQueue:
    """FIFO admission queue with a bounded number of running executions.

    Cancelling a running task only stops result delivery. The execution
    itself runs to completion and keeps holding its slot, so the next task
    is never admitted while the working tree may still be mutated.
    """

    def __init__(
        self,
        executor: Executor,
        capacity: int | None = None,
        cooldown: float | None = None,
    ):
        self._executor = executor
        self.capacity = settings.queue_capacity if capacity is None else capacity
        self.cooldown = settings.queue_cooldown if cooldown is None else cooldown
        if self.capacity < 1:
            raise ValueError("capacity must be at least 1")

        self._pending: deque[DeploymentTask] = deque()
        self._active: dict[str, DeploymentTask] = {}
        # Cancelled runs whose external commands are still working
        self._detached: set[str] = set()
        self._runs: set[asyncio.Task] = set()
        self._slots_in_use = 0
        self._closed = False
        self.logger = get_logger("queue")

    @property
    def is_closed(self) -> bool:
        return self._closed

    def submit(self, request: DeploymentRequest) -> DeploymentTask:
        """Enqueue a request. Await the returned task for its result.

        Raises:
            QueueClosedError: If the queue has been shut down.
        """
        if self._closed:
            raise QueueClosedError()

        task = DeploymentTask(request=request)
        self._pending.append(task)
        self.logger.info(
            "queue.enqueued",
            task_id=task.id,
            domain=request.domain,
            position=len(self._pending),
        )

        self._dispatch()
        return task

    def status(self, task_id: str) -> QueueStatus:
        """Whether a task is running and its 1-based position if queued."""
        if task_id in self._active:
            return QueueStatus(task_id=task_id, active=True)

        for position, task in enumerate(self._pending, start=1):
            if task.id == task_id:
                return QueueStatus(task_id=task_id, queue_position=position)

        return QueueStatus(task_id=task_id)

    def get(self, task_id: str) -> DeploymentTask | None:
        """Get a queued or running task by ID."""
        if task_id in self._active:
            return self._active[task_id]
        for task in self._pending:
            if task.id == task_id:
                return task
        return None

    def cancel(self, task_id: str) -> bool:
        """Stop tracking a task. Returns False if the task is unknown.

        A queued task is removed and never runs. A running task is dropped
        from the active set and its handle is cancelled, but the external
        processes it already started are not interrupted.
        """
        for task in self._pending:
            if task.id == task_id:
                self._pending.remove(task)
                task.future.cancel()
                self.logger.info("queue.cancelled", task_id=task_id, state="queued")
                return True

        task = self._active.pop(task_id, None)
        if task is None:
            return False

        self._detached.add(task_id)
        task.future.cancel()
        self.logger.warning(
            "queue.cancelled",
            task_id=task_id,
            state="running",
            note="external processes keep running until the step finishes",
        )
        return True

    def summary(self) -> dict[str, int]:
        """Queue counts. ``active`` includes cancelled runs that are still executing."""
        return {
            "queued": len(self._pending),
            "active": len(self._active) + len(self._detached),
            "detached": len(self._detached),
            "capacity": self.capacity,
        }

    async def shutdown(self, wait: bool = True) -> None:
        """Stop accepting tasks, drop queued ones and wait for running ones."""
        self._closed = True

        while self._pending:
            task = self._pending.popleft()
            task.future.cancel()

        self.logger.info("queue.shutdown", running=len(self._runs))

        if wait and self._runs:
            await asyncio.gather(*self._runs, return_exceptions=True)

    def _dispatch(self) -> None:
        """Admit queued tasks while execution slots are free."""
        while self._pending and self._slots_in_use < self.capacity and not self._closed:
            task = self._pending.popleft()
            task.status = TaskStatus.RUNNING
            task.started_at = datetime.utcnow()
            self._active[task.id] = task
            self._slots_in_use += 1

            run = asyncio.create_task(self._execute(task), name=task.id)
            self._runs.add(run)
            run.add_done_callback(self._runs.discard)

            self.logger.info("queue.started", task_id=task.id, domain=task.request.domain)

    async def _execute(self, task: DeploymentTask) -> None:
        try:
            result = await self._executor(task)
        except Exception as e:
            self.logger.error("queue.failed", task_id=task.id, error=str(e))
            if not task.future.done():
                task.future.set_exception(e)
        else:
            self.logger.info("queue.completed", task_id=task.id, success=result.success)
            if not task.future.done():
                task.future.set_result(result)
        finally:
            self._active.pop(task.id, None)
            self._detached.discard(task.id)
            try:
                # Give external tools a breather before the next run
                if self.cooldown > 0:
                    await asyncio.sleep(self.cooldown)
            finally:
                self._slots_in_use -= 1
                self._dispatch()
