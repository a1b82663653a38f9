"""Change publisher.

Stages generated store files, commits them when something changed and
pushes to the deployment remote.
"""

from pathlib import Path

from storedeploy.config import settings
from storedeploy.core.exceptions import PublishError
from storedeploy.models.deployment import DeploymentRequest, PublishOutcome
from storedeploy.steps.base import GitComponent
from storedeploy.steps.parsing import mentions
from storedeploy.steps.process import ProcessRunner

# Push failures that mean the branch simply has no upstream yet
MISSING_UPSTREAM_MARKERS = (
    "no upstream",
    "has no upstream branch",
    "--set-upstream",
    "src refspec",
)

COMMIT_FOOTER = "Auto-deployed via storedeploy"


def build_commit_message(request: DeploymentRequest) -> str:
    """Summary line, blank line, then deployment details."""
    lines = [
        f"feat: deploy {request.display_name} store",
        "",
        f"- Store: {request.store_identity}",
        f"- Domain: {request.domain}",
    ]
    for key, value in request.metadata.items():
        lines.append(f"- {key.replace('_', ' ').capitalize()}: {value}")
    lines.extend(["", COMMIT_FOOTER])
    return "\n".join(lines)


class ChangePublisher(GitComponent):
    """Stages, commits and pushes generated output."""

    def __init__(
        self,
        runner: ProcessRunner | None = None,
        project_root: str | Path | None = None,
        stores_dir: str | None = None,
        extra_paths: list[str] | None = None,
        branch: str | None = None,
        remote: str | None = None,
        **kwargs,
    ):
        super().__init__(runner, project_root, **kwargs)
        self.stores_dir = stores_dir or settings.stores_dir
        self.extra_paths = (
            extra_paths
            if extra_paths is not None
            else [settings.host_manifest, settings.project_manifest]
        )
        self.branch = branch or settings.deploy_branch
        self.remote = remote or settings.git_remote

    @property
    def name(self) -> str:
        return "publisher"

    async def publish(
        self,
        request: DeploymentRequest,
        push: bool = True,
    ) -> PublishOutcome:
        """Stage, commit (only if something changed) and push.

        Raises:
            PublishError: If staging or committing fails.
        """
        outcome = PublishOutcome()
        self.logger.info("publisher.staging", store=request.store_identity)

        result = await self.git("add", f"{self.stores_dir}/")
        if not result.ok:
            raise PublishError(
                f"Could not stage {self.stores_dir}/: {result.describe()}",
                {"path": self.stores_dir},
            )

        # Host and project manifests are optional
        for path in self.extra_paths:
            if (self.project_root / path).exists():
                await self.git("add", path)

        diff = await self.git("diff", "--cached", "--name-only")
        if diff.ok:
            outcome.staged_files = [line for line in diff.stdout.splitlines() if line.strip()]
            if not outcome.staged_files:
                self.logger.info("publisher.no_changes")
                return await self._publish_pending(outcome, push)
        else:
            # Unknown diff; commit anyway and let git decide
            self.logger.warning("publisher.diff_failed", error=diff.describe())
            outcome.staged_files = [f"{self.stores_dir}/"]

        message = build_commit_message(request)
        result = await self.git("commit", "-m", message)
        if not result.ok:
            if mentions(result.output, "nothing to commit"):
                self.logger.info("publisher.no_changes")
                outcome.staged_files = []
                return await self._publish_pending(outcome, push)
            raise PublishError(f"Git commit failed: {result.describe()}")

        outcome.committed = True
        self.logger.info("publisher.committed", files=len(outcome.staged_files))

        if push:
            await self._push(outcome)
        else:
            self.logger.info("publisher.push_skipped", reason="no remote")
        return outcome

    async def _publish_pending(self, outcome: PublishOutcome, push: bool) -> PublishOutcome:
        """Push commits left behind by an earlier run whose push failed."""
        if not push:
            return outcome

        outcome.unpushed_commits = await self._commits_ahead()
        if outcome.unpushed_commits == 0:
            return outcome

        self.logger.info("publisher.unpushed_commits", count=outcome.unpushed_commits)
        await self._push(outcome)
        return outcome

    async def _commits_ahead(self) -> int | None:
        """Commits on the branch that its remote counterpart lacks."""
        result = await self.git(
            "rev-list", "--count", f"{self.remote}/{self.branch}..HEAD"
        )
        if not result.ok:
            # No remote-tracking ref yet, e.g. the branch was never pushed
            return None
        try:
            return int(result.stdout.strip())
        except ValueError:
            return None

    async def _push(self, outcome: PublishOutcome) -> None:
        result = await self.git("push", self.remote, self.branch)
        if result.ok:
            outcome.pushed = True
            self.logger.info("publisher.pushed", remote=self.remote, branch=self.branch)
            return

        if mentions(result.output, *MISSING_UPSTREAM_MARKERS):
            self.logger.info("publisher.setting_upstream", branch=self.branch)
            result = await self.git("push", "--set-upstream", self.remote, self.branch)
            if result.ok:
                outcome.pushed = True
                self.logger.info("publisher.pushed", remote=self.remote, upstream=True)
                return

        outcome.warnings.append(f"Could not push to {self.remote}: {result.describe()}")
        self.logger.warning("publisher.push_failed", error=result.describe())
