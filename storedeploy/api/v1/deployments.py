"""Deployment endpoints."""

import asyncio

from fastapi import APIRouter, status
from pydantic import BaseModel
from sse_starlette.sse import EventSourceResponse

from storedeploy.api.deps import ServiceDep
from storedeploy.core.events import Event
from storedeploy.core.service import TaskState
from storedeploy.models.deployment import DeploymentRequest

router = APIRouter()


class SubmitResponse(BaseModel):
    """Response after enqueueing a deployment."""

    task_id: str
    state: str
    domain: str
    active: bool
    queue_position: int | None = None


class QueueSummary(BaseModel):
    queued: int
    active: int
    detached: int = 0
    capacity: int


@router.post(
    "",
    response_model=SubmitResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Deploy a store",
    description="Queue a deployment. Returns immediately; poll the task or stream its events.",
)
async def submit_deployment(
    data: DeploymentRequest,
    service: ServiceDep,
) -> SubmitResponse:
    task = await service.submit_deployment(data)
    current = service.queue.status(task.id)
    return SubmitResponse(
        task_id=task.id,
        state=task.status.value,
        domain=data.domain,
        active=current.active,
        queue_position=current.queue_position,
    )


@router.get("/queue", response_model=QueueSummary)
async def queue_summary(service: ServiceDep) -> QueueSummary:
    """Number of queued and running deployments."""
    return QueueSummary(**service.queue_summary())


@router.get("/{task_id}", response_model=TaskState)
async def get_deployment(task_id: str, service: ServiceDep) -> TaskState:
    """Get deployment status, including the result once finished."""
    return service.get_status(task_id)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_deployment(task_id: str, service: ServiceDep) -> None:
    """Cancel a deployment.

    A queued deployment never runs. A running one stops reporting, but
    commands it already started are not interrupted.
    """
    await service.cancel(task_id)


@router.get("/{task_id}/events")
async def stream_events(task_id: str, service: ServiceDep) -> EventSourceResponse:
    """Stream real-time events for a deployment using Server-Sent Events."""
    current = service.get_status(task_id)

    async def event_generator():
        queue = service.events.subscribe(task_id)

        try:
            # Send initial status
            yield {
                "event": "connected",
                "data": current.model_dump_json(),
            }

            if current.state not in ("queued", "running"):
                return

            # Stream events until the deployment finishes or client disconnects
            while True:
                try:
                    event: Event = await asyncio.wait_for(queue.get(), timeout=30.0)
                    yield {
                        "event": event.event_type,
                        "data": event.to_json(),
                    }

                    if event.is_terminal:
                        break

                except asyncio.TimeoutError:
                    # Send keepalive
                    yield {"event": "keepalive", "data": "{}"}

        finally:
            service.events.unsubscribe(task_id)

    return EventSourceResponse(event_generator())
