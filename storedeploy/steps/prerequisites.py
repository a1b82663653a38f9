"""Prerequisite validator.

Checks that the working tree can be deployed from, repairing trivial gaps
(missing output directory, missing VCS identity) on the way.
"""

from pathlib import Path

from storedeploy.config import settings
from storedeploy.core.exceptions import PrerequisiteError
from storedeploy.models.deployment import PrerequisiteReport
from storedeploy.steps.base import GitComponent
from storedeploy.steps.process import ProcessRunner


class PrerequisiteValidator(GitComponent):
    """Validates environment readiness before any file is touched."""

    def __init__(
        self,
        runner: ProcessRunner | None = None,
        project_root: str | Path | None = None,
        runtime_command: str | None = None,
        project_manifest: str | None = None,
        stores_dir: str | None = None,
        git_user_name: str | None = None,
        git_user_email: str | None = None,
        **kwargs,
    ):
        super().__init__(runner, project_root, **kwargs)
        self.runtime_command = runtime_command or settings.runtime_command
        self.project_manifest = project_manifest or settings.project_manifest
        self.stores_dir = stores_dir or settings.stores_dir
        self.git_user_name = git_user_name or settings.git_user_name
        self.git_user_email = git_user_email or settings.git_user_email

    @property
    def name(self) -> str:
        return "prerequisites"

    async def validate(self) -> PrerequisiteReport:
        """Run every check, collecting unrepairable gaps into one error.

        Raises:
            PrerequisiteError: If any prerequisite is missing and could
                not be repaired.
        """
        self.logger.info("prerequisites.validating", root=str(self.project_root))

        report = PrerequisiteReport()
        missing: list[str] = []

        # Runtime
        result = await self.runner.run(
            [self.runtime_command, "--version"],
            timeout=self.timeout,
        )
        if result.ok:
            report.runtime_version = result.stdout.strip()
            self.logger.info("prerequisites.runtime", version=report.runtime_version)
        else:
            missing.append(f"{self.runtime_command} runtime not found")

        # Project root
        if not (self.project_root / self.project_manifest).exists():
            missing.append(
                f"No {self.project_manifest} found - not in a project directory"
            )

        # Output directory
        stores_path = self.project_root / self.stores_dir
        if not stores_path.is_dir():
            try:
                stores_path.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                missing.append(f"Could not create {self.stores_dir} directory: {e}")
            else:
                report.repairs.append(f"created {self.stores_dir} directory")
                self.logger.info("prerequisites.created_dir", path=str(stores_path))

        # VCS identity
        if not await self.identity_configured():
            self.logger.warning("prerequisites.git_identity_missing")
            if await self.apply_identity(self.git_user_name, self.git_user_email):
                report.repairs.append("applied default git identity")
            elif not await self.is_repository():
                # No working tree yet; the repository step applies it after init
                report.repairs.append("git identity deferred until repository init")
            else:
                missing.append("Could not configure Git identity")

        if missing:
            self.logger.error("prerequisites.failed", missing=missing)
            raise PrerequisiteError(missing)

        self.logger.info("prerequisites.validated", repairs=report.repairs)
        return report

