"""Repository configurator.

Ensures the working tree is a git repository on the deployment branch with
at least one commit.
"""

from pathlib import Path

from storedeploy.config import settings
from storedeploy.core.exceptions import RepositoryError
from storedeploy.models.deployment import RepositoryState
from storedeploy.steps.base import GitComponent
from storedeploy.steps.process import ProcessRunner

README_CONTENT = """# Multi-Store E-commerce Platform

This repository contains automated store deployments.

## Generated Stores

Each store is automatically generated and deployed to its own domain.
"""

GITIGNORE_CONTENT = """node_modules/
.env
.DS_Store
*.log
.vercel
.vscode/
.idea/
"""

INITIAL_COMMIT_MESSAGE = """chore: initial commit

Bootstrap repository for automated store deployments.
"""


class RepositoryConfigurator(GitComponent):
    """Prepares the VCS working tree for publishing."""

    def __init__(
        self,
        runner: ProcessRunner | None = None,
        project_root: str | Path | None = None,
        branch: str | None = None,
        remote: str | None = None,
        git_user_name: str | None = None,
        git_user_email: str | None = None,
        **kwargs,
    ):
        super().__init__(runner, project_root, **kwargs)
        self.branch = branch or settings.deploy_branch
        self.remote = remote or settings.git_remote
        self.git_user_name = git_user_name or settings.git_user_name
        self.git_user_email = git_user_email or settings.git_user_email

    @property
    def name(self) -> str:
        return "repository"

    async def configure(self) -> RepositoryState:
        """Initialise, bootstrap and check out the deployment branch.

        Raises:
            RepositoryError: If the repository cannot be initialised or the
                bootstrap commit fails.
        """
        self.logger.info("repository.configuring", root=str(self.project_root))
        state = RepositoryState(branch=self.branch)

        if await self.is_repository():
            self.logger.info("repository.exists")
        else:
            self.logger.info("repository.initializing")
            result = await self.git("init")
            if not result.ok:
                raise RepositoryError(
                    f"git init failed: {result.describe()}",
                    {"command": "git init"},
                )
            state.initialized = True
            if not await self.identity_configured():
                await self.apply_identity(self.git_user_name, self.git_user_email)

        if not (await self.git("rev-parse", "--verify", "HEAD")).ok:
            await self._create_initial_commit()
            state.bootstrapped = True

        await self._checkout_branch(state)

        remote = await self.git("remote", "get-url", self.remote)
        if remote.ok and remote.stdout.strip():
            state.remote_url = remote.stdout.strip()
            self.logger.info("repository.remote", url=state.remote_url)
        else:
            state.warnings.append(
                f"No '{self.remote}' remote configured - deployment will be local only"
            )
            self.logger.warning("repository.no_remote", remote=self.remote)

        return state

    async def _create_initial_commit(self) -> None:
        """Write README/.gitignore if missing and commit them."""
        self.logger.info("repository.bootstrapping")

        readme = self.project_root / "README.md"
        gitignore = self.project_root / ".gitignore"
        try:
            if not readme.exists():
                readme.write_text(README_CONTENT, encoding="utf-8")
            if not gitignore.exists():
                gitignore.write_text(GITIGNORE_CONTENT, encoding="utf-8")
        except OSError as e:
            raise RepositoryError(f"Could not write bootstrap files: {e}")

        result = await self.git("add", "README.md", ".gitignore")
        if not result.ok:
            raise RepositoryError(f"Could not stage bootstrap files: {result.describe()}")

        result = await self.git("commit", "-m", INITIAL_COMMIT_MESSAGE)
        if not result.ok:
            raise RepositoryError(f"Initial commit failed: {result.describe()}")

        self.logger.info("repository.bootstrapped")

    async def _checkout_branch(self, state: RepositoryState) -> None:
        current = await self.git("rev-parse", "--abbrev-ref", "HEAD")
        if current.ok and current.stdout.strip() == self.branch:
            return

        if (await self.git("checkout", self.branch)).ok:
            self.logger.info("repository.branch_checked_out", branch=self.branch)
            return

        created = await self.git("checkout", "-b", self.branch)
        if created.ok:
            self.logger.info("repository.branch_created", branch=self.branch)
            return

        message = f"Could not switch to branch '{self.branch}': {created.describe()}"
        state.warnings.append(message)
        self.logger.warning("repository.branch_failed", branch=self.branch, error=created.describe())
