"""Base class for pipeline components."""

from abc import ABC, abstractmethod
from pathlib import Path

from storedeploy.config import settings
from storedeploy.steps.process import ProcessRunner
from storedeploy.utils.logging import get_logger


class PipelineComponent(ABC):
    """Base class for components that drive external tools.

    All components share a process runner rooted at the working tree and
    a logger named after the component.
    """

    def __init__(
        self,
        runner: ProcessRunner | None = None,
        project_root: str | Path | None = None,
    ):
        self.project_root = Path(project_root or settings.project_root)
        self.runner = runner or ProcessRunner(
            cwd=self.project_root,
            secrets=[settings.host_token],
        )
        self.logger = get_logger(f"step.{self.name}")

    @property
    @abstractmethod
    def name(self) -> str:
        """Component name/identifier."""
        pass


class GitComponent(PipelineComponent):
    """Component that drives the version-control CLI."""

    def __init__(
        self,
        runner: ProcessRunner | None = None,
        project_root: str | Path | None = None,
        git_binary: str | None = None,
        timeout: float | None = None,
    ):
        super().__init__(runner, project_root)
        self.git_binary = git_binary or settings.git_binary
        self.timeout = settings.command_timeout if timeout is None else timeout

    async def git(self, *args: str, timeout: float | None = None):
        """Run a git subcommand in the working tree."""
        return await self.runner.run(
            [self.git_binary, *args],
            timeout=self.timeout if timeout is None else timeout,
        )

    async def identity_configured(self) -> bool:
        name = await self.git("config", "--get", "user.name")
        email = await self.git("config", "--get", "user.email")
        return name.ok and email.ok

    async def apply_identity(self, user_name: str, user_email: str) -> bool:
        """Set the commit identity for this working tree."""
        name = await self.git("config", "user.name", user_name)
        if not name.ok:
            return False
        email = await self.git("config", "user.email", user_email)
        return email.ok

    async def is_repository(self) -> bool:
        return (await self.git("rev-parse", "--git-dir")).ok


class HostComponent(PipelineComponent):
    """Component that drives the hosting-platform CLI."""

    def __init__(
        self,
        runner: ProcessRunner | None = None,
        project_root: str | Path | None = None,
        host_binary: str | None = None,
        token: str | None = None,
        scope: str | None = None,
    ):
        super().__init__(runner, project_root)
        self.host_binary = host_binary or settings.host_binary
        self.token = settings.host_token if token is None else token
        self.scope = settings.host_scope if scope is None else scope

    async def host(self, *args: str, timeout: float):
        """Run a hosting CLI subcommand, adding credentials when configured."""
        cmd = [self.host_binary, *args]
        if self.token:
            cmd.extend(["--token", self.token])
        if self.scope:
            cmd.extend(["--scope", self.scope])
        return await self.runner.run(cmd, timeout=timeout)
