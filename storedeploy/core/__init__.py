"""Core functionality for storedeploy."""

from storedeploy.core.exceptions import (
    DeploymentStepError,
    HostConfigError,
    PrerequisiteError,
    PublishError,
    QueueClosedError,
    RepositoryError,
    StoreDeployError,
    TaskNotFoundError,
)

__all__ = [
    "DeploymentStepError",
    "HostConfigError",
    "PrerequisiteError",
    "PublishError",
    "QueueClosedError",
    "RepositoryError",
    "StoreDeployError",
    "TaskNotFoundError",
]
