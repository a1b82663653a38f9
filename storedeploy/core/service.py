"""Caller-facing deployment service.

Owns the admission queue, the orchestrator, the event bus and the result
store. Constructed explicitly and started/stopped by its owner (the API
lifespan, or a test).
"""

from pydantic import BaseModel

from storedeploy.config import settings
from storedeploy.core.events import EventBus
from storedeploy.core.exceptions import DeploymentStepError, TaskNotFoundError
from storedeploy.core.orchestrator import DeploymentOrchestrator
from storedeploy.core.queue import DeploymentQueue
from storedeploy.core.results import FinishedTask, ResultStore
from storedeploy.models.deployment import (
    DeploymentRequest,
    DeploymentResult,
    DeploymentTask,
    DomainBinding,
)
from storedeploy.steps.domains import DomainBinder
from storedeploy.steps.liveness import LivenessChecker
from storedeploy.utils.logging import get_logger

logger = get_logger(__name__)


class TaskState(BaseModel):
    """Status of a deployment task as seen by callers."""

    task_id: str
    state: str
    active: bool = False
    queue_position: int | None = None
    domain: str | None = None
    result: DeploymentResult | None = None
    error: str | None = None
    step: str | None = None


class DeploymentService:
    """submit / status / cancel on top of the pipeline."""

    def __init__(
        self,
        orchestrator: DeploymentOrchestrator | None = None,
        events: EventBus | None = None,
        results: ResultStore | None = None,
        checker: LivenessChecker | None = None,
        domains: DomainBinder | None = None,
        capacity: int | None = None,
        cooldown: float | None = None,
    ):
        self.orchestrator = orchestrator or DeploymentOrchestrator()
        self.events = events or EventBus()
        self.results = results or ResultStore(ttl_hours=settings.result_ttl_hours)
        self.checker = checker or LivenessChecker()
        self.domains = domains or DomainBinder()
        self.queue = DeploymentQueue(self._execute, capacity=capacity, cooldown=cooldown)
        self._started = False

    @property
    def is_running(self) -> bool:
        return self._started and not self.queue.is_closed

    async def start(self) -> None:
        self._started = True
        logger.info("service.started", capacity=self.queue.capacity)

    async def shutdown(self) -> None:
        await self.queue.shutdown()
        logger.info("service.shutdown", finished=len(self.results))

    async def submit_deployment(self, request: DeploymentRequest) -> DeploymentTask:
        """Enqueue a deployment and return its handle without waiting."""
        task = self.queue.submit(request)
        task.future.add_done_callback(lambda _: self._settle(task))
        await self.events.publish_queued(task.id, self.queue.status(task.id).queue_position)
        return task

    async def deploy(self, request: DeploymentRequest) -> DeploymentResult:
        """Enqueue a deployment and wait for its result."""
        task = await self.submit_deployment(request)
        return await task

    def get_status(self, task_id: str) -> TaskState:
        """Current state of a task, including finished ones.

        Raises:
            TaskNotFoundError: If the task is unknown (or expired).
        """
        task = self.queue.get(task_id)
        if task is not None:
            status = self.queue.status(task_id)
            return TaskState(
                task_id=task_id,
                state=task.status.value,
                active=status.active,
                queue_position=status.queue_position,
                domain=task.request.domain,
            )

        finished = self.results.get(task_id)
        if finished is None:
            raise TaskNotFoundError(task_id)

        return TaskState(
            task_id=task_id,
            state=finished.state,
            domain=finished.result.domain if finished.result else None,
            result=finished.result,
            error=finished.error,
            step=finished.step,
        )

    async def cancel(self, task_id: str) -> None:
        """Cancel a queued or running task.

        Raises:
            TaskNotFoundError: If the task is not queued or running.
        """
        if not self.queue.cancel(task_id):
            raise TaskNotFoundError(task_id)
        await self.events.publish_cancelled(task_id)

    def queue_summary(self) -> dict[str, int]:
        return self.queue.summary()

    async def check_live(self, domain: str) -> bool:
        """Quick liveness check of a domain."""
        return await self.checker.check(domain)

    async def release_domain(self, domain: str) -> list[DomainBinding]:
        """Detach a domain from the hosting project."""
        return await self.domains.release(domain)

    async def _execute(self, task: DeploymentTask) -> DeploymentResult:
        try:
            result = await self.orchestrator.run(
                task.request,
                deployment_id=task.id,
                progress=self.events.progress_sink(task.id),
            )
        except DeploymentStepError as e:
            await self.events.publish_error(task.id, e.message, e.step)
            raise
        except Exception as e:
            await self.events.publish_error(task.id, str(e))
            raise

        await self.events.publish_deployment_complete(task.id, result)
        return result

    def _settle(self, task: DeploymentTask) -> None:
        """Record the final outcome once the task's future resolves."""
        future = task.future
        if future.cancelled():
            self.results.record(FinishedTask(task_id=task.id, state="cancelled"))
            return

        error = future.exception()
        if error is None:
            result = future.result()
            self.results.record(
                FinishedTask(
                    task_id=task.id,
                    state="completed" if result.success else "failed",
                    result=result,
                )
            )
            return

        self.results.record(
            FinishedTask(
                task_id=task.id,
                state="failed",
                error=getattr(error, "message", str(error)),
                step=getattr(error, "step", None),
            )
        )

