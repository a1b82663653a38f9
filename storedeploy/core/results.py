"""Storage for finished deployment outcomes."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from storedeploy.models.deployment import DeploymentResult


@dataclass
class FinishedTask:
    """Final state of a task that has left the queue."""

    task_id: str
    state: str
    result: DeploymentResult | None = None
    error: str | None = None
    step: str | None = None
    finished_at: datetime = field(default_factory=datetime.utcnow)


class ResultStore:
    """Keeps finished task outcomes in memory for a limited time.

    Note: For production, this should be backed by Redis or a database.
    """

    def __init__(self, ttl_hours: int = 24):
        self._finished: dict[str, FinishedTask] = {}
        self._ttl = timedelta(hours=ttl_hours)

    def record(self, finished: FinishedTask) -> FinishedTask:
        """Store a finished task, dropping entries nobody read in time."""
        self.cleanup_expired()
        self._finished[finished.task_id] = finished
        return finished

    def get(self, task_id: str) -> FinishedTask | None:
        """Get a finished task by ID."""
        finished = self._finished.get(task_id)
        if finished and datetime.utcnow() - finished.finished_at > self._ttl:
            del self._finished[task_id]
            return None
        return finished

    def cleanup_expired(self) -> int:
        """Remove expired entries. Returns count of removed entries."""
        now = datetime.utcnow()
        expired = [
            task_id
            for task_id, finished in self._finished.items()
            if now - finished.finished_at > self._ttl
        ]
        for task_id in expired:
            del self._finished[task_id]
        return len(expired)

    def __len__(self) -> int:
        return len(self._finished)
