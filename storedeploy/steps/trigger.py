"""Deployment trigger.

Asks the hosting CLI for a production deployment. When the CLI cannot be
used the pipeline relies on the host's git integration instead.
"""

from pathlib import Path

from storedeploy.config import settings
from storedeploy.models.deployment import (
    FallbackPending,
    Triggered,
    TriggerFailed,
    TriggerOutcome,
)
from storedeploy.steps.base import HostComponent
from storedeploy.steps.parsing import extract_deployment_id, extract_deployment_url
from storedeploy.steps.process import ProcessRunner


class DeploymentTrigger(HostComponent):
    """Produces a new deployment via the hosting CLI."""

    def __init__(
        self,
        runner: ProcessRunner | None = None,
        project_root: str | Path | None = None,
        inspect_timeout: float | None = None,
        deploy_timeout: float | None = None,
        **kwargs,
    ):
        super().__init__(runner, project_root, **kwargs)
        self.inspect_timeout = (
            settings.inspect_timeout if inspect_timeout is None else inspect_timeout
        )
        self.deploy_timeout = (
            settings.deploy_timeout if deploy_timeout is None else deploy_timeout
        )

    @property
    def name(self) -> str:
        return "trigger"

    async def trigger(self, content_published: bool = True) -> TriggerOutcome:
        """Run a production deployment. Never raises.

        Args:
            content_published: Whether the remote already has the current
                content, i.e. whether a git-triggered deployment can happen.
        """
        self.logger.info("trigger.started")

        version = await self.runner.run(
            [self.host_binary, "--version"],
            timeout=self.inspect_timeout,
        )
        if not version.ok:
            return self._fallback(
                f"{self.host_binary} CLI not available: {version.describe()}",
                content_published,
            )

        projects = await self.host("project", "ls", timeout=self.inspect_timeout)
        if not projects.ok:
            return self._fallback(
                f"{self.host_binary} CLI not authorised: {projects.describe()}",
                content_published,
            )

        deploy = await self.host("deploy", "--prod", "--yes", timeout=self.deploy_timeout)
        if not deploy.ok:
            return self._fallback(
                f"{self.host_binary} deploy failed: {deploy.describe()}",
                content_published,
            )

        # The URL is usually on stdout, occasionally only on stderr
        url = extract_deployment_url(deploy.stdout) or extract_deployment_url(deploy.stderr)
        outcome = Triggered(
            url=url,
            host_deployment_id=extract_deployment_id(deploy.output),
        )
        self.logger.info(
            "trigger.deployed",
            url=url or "URL not found in output",
            host_deployment_id=outcome.host_deployment_id,
        )
        return outcome

    def _fallback(self, reason: str, content_published: bool) -> TriggerOutcome:
        if content_published:
            self.logger.warning("trigger.fallback", reason=reason)
            return FallbackPending(reason=reason)

        self.logger.warning("trigger.failed", reason=reason)
        return TriggerFailed(reason=reason)
