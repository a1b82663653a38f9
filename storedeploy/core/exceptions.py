"""Custom exceptions for storedeploy."""

from typing import Any


class StoreDeployError(Exception):
    """Base exception for storedeploy."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class PrerequisiteError(StoreDeployError):
    """One or more deployment prerequisites are missing and cannot be repaired."""

    def __init__(self, missing: list[str]):
        super().__init__(
            f"Prerequisites not met: {', '.join(missing)}",
            {"missing": list(missing)},
        )
        self.missing = list(missing)


class RepositoryError(StoreDeployError):
    """The working tree could not be initialised as a repository."""

    pass


class PublishError(StoreDeployError):
    """Generated files could not be staged or committed."""

    pass


class HostConfigError(StoreDeployError):
    """The hosting manifest could not be read or written."""

    def __init__(self, message: str, path: str | None = None):
        details = {}
        if path is not None:
            details["path"] = path
        super().__init__(message, details)


class DeploymentStepError(StoreDeployError):
    """A pipeline step failed fatally."""

    def __init__(self, step: str, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            f"Deployment failed in step '{step}': {message}",
            {"step": step, **(details or {})},
        )
        self.step = step


class TaskNotFoundError(StoreDeployError):
    """Deployment task not found."""

    def __init__(self, task_id: str):
        super().__init__(
            f"Deployment task not found: {task_id}",
            {"task_id": task_id},
        )
        self.task_id = task_id


class QueueClosedError(StoreDeployError):
    """The admission queue is not accepting submissions."""

    def __init__(self) -> None:
        super().__init__("Deployment queue is shut down")
