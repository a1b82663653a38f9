"""Data models for storedeploy."""

from storedeploy.models.deployment import (
    AliasOutcome,
    CommandResult,
    DeploymentMethod,
    DeploymentRequest,
    DeploymentResult,
    DeploymentTask,
    DomainBinding,
    FallbackPending,
    PipelineStage,
    PrerequisiteReport,
    ProgressEvent,
    PublishOutcome,
    QueueStatus,
    RepositoryState,
    TaskStatus,
    Triggered,
    TriggerFailed,
    TriggerOutcome,
)

__all__ = [
    "AliasOutcome",
    "CommandResult",
    "DeploymentMethod",
    "DeploymentRequest",
    "DeploymentResult",
    "DeploymentTask",
    "DomainBinding",
    "FallbackPending",
    "PipelineStage",
    "PrerequisiteReport",
    "ProgressEvent",
    "PublishOutcome",
    "QueueStatus",
    "RepositoryState",
    "TaskStatus",
    "Triggered",
    "TriggerFailed",
    "TriggerOutcome",
]
