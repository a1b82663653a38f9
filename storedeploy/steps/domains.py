"""Domain binder.

Attaches a store's domain to the hosting project and aliases deployments
to it. Every operation here is soft: failures are reported, never raised.
"""

from pathlib import Path

from storedeploy.config import settings
from storedeploy.models.deployment import AliasOutcome, DomainBinding
from storedeploy.steps.base import HostComponent
from storedeploy.steps.parsing import mentions
from storedeploy.steps.process import ProcessRunner

ALREADY_BOUND_MARKERS = ("already assigned", "already added", "already exists", "already in use")
NOT_FOUND_MARKERS = ("not found", "doesn't exist", "does not exist", "no such")


class DomainBinder(HostComponent):
    """Binds, aliases and releases domains on the hosting platform."""

    def __init__(
        self,
        runner: ProcessRunner | None = None,
        project_root: str | Path | None = None,
        inspect_timeout: float | None = None,
        add_timeout: float | None = None,
        **kwargs,
    ):
        super().__init__(runner, project_root, **kwargs)
        self.inspect_timeout = (
            settings.inspect_timeout if inspect_timeout is None else inspect_timeout
        )
        self.add_timeout = settings.domain_add_timeout if add_timeout is None else add_timeout

    @property
    def name(self) -> str:
        return "domains"

    async def connect(self, domain: str) -> DomainBinding:
        """Make sure the domain is registered on the hosting project."""
        self.logger.info("domains.connecting", domain=domain)

        inspect = await self.host("domains", "inspect", domain, timeout=self.inspect_timeout)
        if inspect.ok:
            self.logger.info("domains.already_exists", domain=domain)
            return DomainBinding(
                success=True,
                domain=domain,
                message="Domain already exists",
                already_exists=True,
            )

        if inspect.error is not None or not mentions(inspect.output, *NOT_FOUND_MARKERS):
            self.logger.warning("domains.inspect_failed", domain=domain, error=inspect.describe())
            return DomainBinding(
                success=False,
                domain=domain,
                message=f"Domain inspection failed: {inspect.describe()}",
            )

        add = await self.host("domains", "add", domain, "--force", timeout=self.add_timeout)
        if add.ok:
            self.logger.info("domains.added", domain=domain)
            return DomainBinding(
                success=True,
                domain=domain,
                message="Domain added and connected successfully",
            )

        if mentions(add.output, *ALREADY_BOUND_MARKERS):
            self.logger.info("domains.already_exists", domain=domain)
            return DomainBinding(
                success=True,
                domain=domain,
                message="Domain already exists",
                already_exists=True,
            )

        self.logger.warning("domains.add_failed", domain=domain, error=add.describe())
        return DomainBinding(
            success=False,
            domain=domain,
            message=f"Domain addition failed: {add.describe()}",
        )

    async def alias(self, url: str, domain: str) -> AliasOutcome:
        """Point the domain at a specific deployment URL."""
        self.logger.info("domains.aliasing", url=url, domain=domain)

        result = await self.host("alias", "set", url, domain, timeout=self.add_timeout)
        if result.ok:
            self.logger.info("domains.aliased", url=url, domain=domain)
            return AliasOutcome(
                success=True,
                url=url,
                domain=domain,
                message=f"{domain} now points to {url}",
            )

        self.logger.warning("domains.alias_failed", url=url, domain=domain, error=result.describe())
        return AliasOutcome(
            success=False,
            url=url,
            domain=domain,
            message=f"Alias creation failed: {result.describe()}",
        )

    async def release(self, domain: str) -> list[DomainBinding]:
        """Remove the domain's alias and the domain itself from the project.

        A missing alias or domain counts as already released.
        """
        self.logger.info("domains.releasing", domain=domain)
        outcomes = []

        for label, args in (
            ("alias", ("alias", "rm", domain, "--yes")),
            ("domain", ("domains", "rm", domain, "--yes")),
        ):
            result = await self.host(*args, timeout=self.add_timeout)
            if result.ok:
                outcomes.append(DomainBinding(True, domain, f"Removed {label} for {domain}"))
            elif result.error is None and mentions(result.output, *NOT_FOUND_MARKERS):
                outcomes.append(DomainBinding(True, domain, f"No {label} found for {domain}"))
            else:
                self.logger.warning("domains.release_failed", domain=domain, step=label, error=result.describe())
                outcomes.append(
                    DomainBinding(False, domain, f"Could not remove {label}: {result.describe()}")
                )

        return outcomes
