"""Event system for Server-Sent Events (SSE)."""

import asyncio
import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable

from storedeploy.models.deployment import DeploymentResult, ProgressEvent

TERMINAL_EVENTS = ("deployment_complete", "error", "cancelled")


@dataclass
class Event:
    """An SSE event."""

    event_type: str
    data: dict[str, Any]
    timestamp: datetime = field(default_factory=datetime.utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.event_type in TERMINAL_EVENTS

    def to_json(self) -> str:
        return json.dumps({**self.data, "timestamp": self.timestamp.isoformat()})

    def to_sse(self) -> str:
        """Convert to SSE format."""
        return f"event: {self.event_type}\ndata: {self.to_json()}\n\n"


class EventBus:
    """Simple event bus for deployment task events."""

    def __init__(self):
        self._subscribers: dict[str, asyncio.Queue[Event]] = {}

    def subscribe(self, task_id: str) -> asyncio.Queue[Event]:
        """Subscribe to events for a task."""
        if task_id not in self._subscribers:
            self._subscribers[task_id] = asyncio.Queue()
        return self._subscribers[task_id]

    def unsubscribe(self, task_id: str) -> None:
        """Unsubscribe from task events."""
        self._subscribers.pop(task_id, None)

    async def publish(self, task_id: str, event: Event) -> None:
        """Publish an event for a task."""
        if task_id in self._subscribers:
            await self._subscribers[task_id].put(event)

    async def publish_queued(self, task_id: str, position: int | None) -> None:
        await self.publish(
            task_id,
            Event(event_type="queued", data={"task_id": task_id, "queue_position": position}),
        )

    async def publish_progress(self, task_id: str, progress: ProgressEvent) -> None:
        """Publish a pipeline progress event."""
        await self.publish(
            task_id,
            Event(event_type="progress", data=progress.model_dump(mode="json")),
        )

    async def publish_deployment_complete(
        self, task_id: str, result: DeploymentResult
    ) -> None:
        """Publish a deployment complete event."""
        await self.publish(
            task_id,
            Event(event_type="deployment_complete", data=result.model_dump(mode="json")),
        )

    async def publish_error(
        self, task_id: str, error: str, step: str | None = None
    ) -> None:
        """Publish an error event."""
        await self.publish(
            task_id,
            Event(
                event_type="error",
                data={"error": error, "step": step},
            ),
        )

    async def publish_cancelled(self, task_id: str) -> None:
        await self.publish(task_id, Event(event_type="cancelled", data={"task_id": task_id}))

    def progress_sink(self, task_id: str) -> Callable[[ProgressEvent], Awaitable[None]]:
        """A progress callback that forwards to this bus."""

        async def sink(progress: ProgressEvent) -> None:
            await self.publish_progress(task_id, progress)

        return sink
