"""Deployment data models."""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field


class PipelineStage(str, Enum):
    """Orchestrator states, in execution order."""

    VALIDATING = "validating"
    BINDING_DOMAIN = "binding-domain"
    CONFIGURING_REPO = "configuring-repo"
    PUBLISHING = "publishing"
    CONFIGURING_HOST = "configuring-host"
    TRIGGERING = "triggering"
    ALIASING = "aliasing"
    MONITORING = "monitoring"
    VERIFYING = "verifying"
    COMPLETED = "completed"
    FAILED = "failed"


class DeploymentMethod(str, Enum):
    """How the new deployment was produced."""

    CLI = "cli"
    FALLBACK = "fallback"
    NONE = "none"


class TaskStatus(str, Enum):
    """Admission queue task status."""

    QUEUED = "queued"
    RUNNING = "running"


class DeploymentRequest(BaseModel):
    """A request to publish one store to its domain."""

    model_config = {"frozen": True}

    store_identity: str = Field(..., min_length=1)
    domain: str = Field(
        ...,
        min_length=3,
        max_length=253,
        pattern=r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?(\.[a-z0-9]([a-z0-9-]*[a-z0-9])?)+$",
    )
    display_name: str = Field(..., min_length=1, max_length=200)
    correlation_id: str = Field(default_factory=lambda: uuid4().hex)

    # Free-form details listed in the commit message (locale, currency, pages...)
    metadata: dict[str, str] = Field(default_factory=dict)


class DeploymentResult(BaseModel):
    """Outcome of one pipeline run."""

    success: bool
    deployment_id: str
    is_live: bool = False
    method: DeploymentMethod = DeploymentMethod.NONE
    url: str | None = None
    domain: str
    warnings: list[str] = Field(default_factory=list)

    committed: bool = False
    pushed: bool = False
    alias_created: bool = False
    host_deployment_id: str | None = None
    duration_ms: int = 0


class ProgressEvent(BaseModel):
    """Incremental pipeline progress, for UI streaming."""

    step: PipelineStage
    message: str
    percent: int = Field(..., ge=0, le=100)


@dataclass
class DeploymentTask:
    """A queued or running execution of the pipeline."""

    request: DeploymentRequest
    id: str = field(default_factory=lambda: f"deployment_{uuid4().hex[:12]}")
    status: TaskStatus = TaskStatus.QUEUED
    enqueued_at: datetime = field(default_factory=datetime.utcnow)
    started_at: datetime | None = None
    future: asyncio.Future = field(
        default_factory=lambda: asyncio.get_running_loop().create_future(),
        repr=False,
    )

    def __await__(self):
        return asyncio.shield(self.future).__await__()


# Step outcomes


@dataclass
class CommandResult:
    """Captured outcome of one external command."""

    args: list[str]
    returncode: int | None = None
    stdout: str = ""
    stderr: str = ""
    error: str | None = None
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and self.returncode == 0

    @property
    def output(self) -> str:
        """stdout and stderr joined."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part)

    def describe(self) -> str:
        """Short failure description for logs and warnings."""
        if self.error:
            return self.error
        text = (self.stderr or self.stdout).strip()
        if text:
            return text[:500]
        return f"exited with status {self.returncode}"


@dataclass
class PrerequisiteReport:
    runtime_version: str | None = None
    repairs: list[str] = field(default_factory=list)


@dataclass
class RepositoryState:
    """Working tree state after configuration."""

    branch: str
    remote_url: str | None = None
    initialized: bool = False
    bootstrapped: bool = False
    warnings: list[str] = field(default_factory=list)

    @property
    def has_remote(self) -> bool:
        return self.remote_url is not None


@dataclass
class PublishOutcome:
    """Result of staging, committing and pushing generated files."""

    committed: bool = False
    pushed: bool = False
    staged_files: list[str] = field(default_factory=list)
    # Local commits the remote does not have yet; None when unknown
    unpushed_commits: int | None = 0
    warnings: list[str] = field(default_factory=list)

    @property
    def up_to_date(self) -> bool:
        """Nothing new was staged and the remote has every local commit."""
        return not self.staged_files and self.unpushed_commits == 0

    @property
    def content_published(self) -> bool:
        return self.pushed or self.up_to_date


@dataclass
class DomainBinding:
    success: bool
    domain: str
    message: str
    already_exists: bool = False


@dataclass
class AliasOutcome:
    success: bool
    url: str
    domain: str
    message: str


@dataclass
class Triggered:
    """The hosting CLI produced a deployment."""

    url: str | None
    host_deployment_id: str | None = None


@dataclass
class FallbackPending:
    """The CLI could not be used; the completed push triggers the deployment."""

    reason: str


@dataclass
class TriggerFailed:
    """The CLI could not be used and nothing reached the remote either."""

    reason: str


TriggerOutcome = Triggered | FallbackPending | TriggerFailed


class QueueStatus(BaseModel):
    """Where a task stands in the admission queue."""

    task_id: str
    active: bool = False
    queue_position: int | None = None
