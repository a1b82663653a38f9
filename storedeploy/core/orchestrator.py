"""Deployment orchestrator.

Runs the publishing pipeline for one store, in a fixed order:

1. validating       - prerequisites (fatal)
2. binding-domain   - register the domain before any file changes (soft)
3. configuring-repo - working tree, branch, first commit (fatal)
4. publishing       - stage/commit/push generated files (fatal on commit)
5. configuring-host - merge the hosting manifest (soft)
6. triggering       - CLI deployment, falling back to git-triggered (soft)
7. aliasing         - alias the deployment URL to the domain (soft)
8. monitoring       - brief, bounded wait and check of the deployment URL
9. verifying        - liveness of https://{domain} (informational)
"""

import asyncio
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Callable
from uuid import uuid4

from storedeploy.config import settings
from storedeploy.core.exceptions import DeploymentStepError, StoreDeployError
from storedeploy.models.deployment import (
    AliasOutcome,
    DeploymentMethod,
    DeploymentRequest,
    DeploymentResult,
    FallbackPending,
    PipelineStage,
    ProgressEvent,
    Triggered,
    TriggerFailed,
    TriggerOutcome,
)
from storedeploy.steps.domains import DomainBinder
from storedeploy.steps.host_config import HostConfigurator
from storedeploy.steps.liveness import LivenessChecker
from storedeploy.steps.prerequisites import PrerequisiteValidator
from storedeploy.steps.process import ProcessRunner
from storedeploy.steps.publisher import ChangePublisher
from storedeploy.steps.repository import RepositoryConfigurator
from storedeploy.steps.trigger import DeploymentTrigger
from storedeploy.utils.logging import get_logger

ProgressCallback = Callable[[ProgressEvent], Awaitable[None]]

STAGE_PERCENT = {
    PipelineStage.VALIDATING: 5,
    PipelineStage.BINDING_DOMAIN: 15,
    PipelineStage.CONFIGURING_REPO: 25,
    PipelineStage.PUBLISHING: 40,
    PipelineStage.CONFIGURING_HOST: 55,
    PipelineStage.TRIGGERING: 65,
    PipelineStage.ALIASING: 80,
    PipelineStage.MONITORING: 88,
    PipelineStage.VERIFYING: 95,
    PipelineStage.COMPLETED: 100,
    PipelineStage.FAILED: 100,
}


@dataclass
class PipelineState:
    """Values threaded through one pipeline run."""

    deployment_id: str
    stage: PipelineStage = PipelineStage.VALIDATING
    method: DeploymentMethod = DeploymentMethod.NONE
    url: str | None = None
    host_deployment_id: str | None = None
    alias: AliasOutcome | None = None
    committed: bool = False
    pushed: bool = False
    is_live: bool = False
    warnings: list[str] = field(default_factory=list)

    def warn(self, message: str) -> None:
        self.warnings.append(message)


class DeploymentOrchestrator:
    """Sequences the pipeline components into one deployment workflow."""

    def __init__(
        self,
        runner: ProcessRunner | None = None,
        checker: LivenessChecker | None = None,
        project_root: str | Path | None = None,
        validator: PrerequisiteValidator | None = None,
        repository: RepositoryConfigurator | None = None,
        publisher: ChangePublisher | None = None,
        host_config: HostConfigurator | None = None,
        trigger: DeploymentTrigger | None = None,
        domains: DomainBinder | None = None,
        monitor_wait: float | None = None,
        monitor_check_timeout: float | None = None,
        verify_attempts: int | None = None,
        verify_delay: float | None = None,
    ):
        root = Path(project_root or settings.project_root)
        self.runner = runner or ProcessRunner(cwd=root, secrets=[settings.host_token])
        self.checker = checker or LivenessChecker()

        self.validator = validator or PrerequisiteValidator(self.runner, root)
        self.repository = repository or RepositoryConfigurator(self.runner, root)
        self.publisher = publisher or ChangePublisher(self.runner, root)
        self.host_config = host_config or HostConfigurator(root)
        self.trigger = trigger or DeploymentTrigger(self.runner, root)
        self.domains = domains or DomainBinder(self.runner, root)

        self.monitor_wait = settings.monitor_wait if monitor_wait is None else monitor_wait
        self.monitor_check_timeout = (
            settings.monitor_check_timeout
            if monitor_check_timeout is None
            else monitor_check_timeout
        )
        self.verify_attempts = (
            settings.liveness_attempts if verify_attempts is None else verify_attempts
        )
        self.verify_delay = settings.liveness_delay if verify_delay is None else verify_delay

        self.active_deployments: set[str] = set()
        self.logger = get_logger("orchestrator")

    async def run(
        self,
        request: DeploymentRequest,
        deployment_id: str | None = None,
        progress: ProgressCallback | None = None,
    ) -> DeploymentResult:
        """Run the complete pipeline for a store.

        Raises:
            DeploymentStepError: If a fatal step (validation, repository
                configuration or committing) fails.
        """
        state = PipelineState(deployment_id=deployment_id or f"deployment_{uuid4().hex[:12]}")
        started = time.perf_counter()
        log = self.logger.bind(deployment_id=state.deployment_id, domain=request.domain)

        log.info("orchestrator.pipeline.started", store=request.store_identity)
        self.active_deployments.add(state.deployment_id)

        async def enter(stage: PipelineStage, message: str) -> None:
            state.stage = stage
            log.info("orchestrator.step.started", step=stage.value)
            if progress is not None:
                await self._emit(progress, stage, message)

        try:
            await enter(PipelineStage.VALIDATING, "Validating deployment prerequisites")
            try:
                await self.validator.validate()
            except StoreDeployError as e:
                raise DeploymentStepError(state.stage.value, e.message, e.details) from e

            await enter(PipelineStage.BINDING_DOMAIN, f"Connecting {request.domain} to the host")
            binding = await self.domains.connect(request.domain)
            if not binding.success:
                state.warn(binding.message)

            await enter(PipelineStage.CONFIGURING_REPO, "Configuring git repository")
            try:
                repo = await self.repository.configure()
            except StoreDeployError as e:
                raise DeploymentStepError(state.stage.value, e.message, e.details) from e
            state.warnings.extend(repo.warnings)

            await enter(PipelineStage.PUBLISHING, f"Publishing files for {request.display_name}")
            try:
                published = await self.publisher.publish(request, push=repo.has_remote)
            except StoreDeployError as e:
                raise DeploymentStepError(state.stage.value, e.message, e.details) from e
            state.committed = published.committed
            state.pushed = published.pushed
            state.warnings.extend(published.warnings)

            await enter(PipelineStage.CONFIGURING_HOST, "Updating hosting configuration")
            try:
                self.host_config.configure()
            except StoreDeployError as e:
                state.warn(e.message)

            await enter(PipelineStage.TRIGGERING, "Triggering deployment")
            outcome = await self.trigger.trigger(
                content_published=repo.has_remote and published.content_published,
            )
            self._apply_trigger(state, outcome)

            if state.url:
                await enter(PipelineStage.ALIASING, f"Aliasing {state.url} to {request.domain}")
                state.alias = await self.domains.alias(state.url, request.domain)
                if not state.alias.success:
                    state.warn(state.alias.message)

            await enter(PipelineStage.MONITORING, "Monitoring deployment")
            await self._monitor(state)

            await enter(PipelineStage.VERIFYING, f"Verifying https://{request.domain}")
            state.is_live = await self.checker.check(
                request.domain,
                max_attempts=self.verify_attempts,
                delay=self.verify_delay,
            )
            if not state.is_live:
                state.warn(
                    f"https://{request.domain} is not live yet - domain may still be propagating"
                )

            result = DeploymentResult(
                success=True,
                deployment_id=state.deployment_id,
                is_live=state.is_live,
                method=state.method,
                url=state.url,
                domain=request.domain,
                warnings=state.warnings,
                committed=state.committed,
                pushed=state.pushed,
                alias_created=bool(state.alias and state.alias.success),
                host_deployment_id=state.host_deployment_id,
                duration_ms=int((time.perf_counter() - started) * 1000),
            )

            await enter(PipelineStage.COMPLETED, "Deployment completed")
            log.info(
                "orchestrator.pipeline.completed",
                method=result.method.value,
                is_live=result.is_live,
                warnings=len(result.warnings),
                duration_ms=result.duration_ms,
            )
            return result

        except DeploymentStepError as e:
            log.error("orchestrator.pipeline.failed", step=e.step, error=e.message)
            state.stage = PipelineStage.FAILED
            if progress is not None:
                await self._emit(progress, PipelineStage.FAILED, e.message)
            raise

        finally:
            self.active_deployments.discard(state.deployment_id)

    def _apply_trigger(self, state: PipelineState, outcome: TriggerOutcome) -> None:
        """Fold the trigger outcome into the pipeline state."""
        if isinstance(outcome, Triggered):
            state.method = DeploymentMethod.CLI
            state.url = outcome.url
            state.host_deployment_id = outcome.host_deployment_id
            if not outcome.url:
                state.warn("Deployment URL not found in CLI output; skipping alias")
        elif isinstance(outcome, FallbackPending):
            state.method = DeploymentMethod.FALLBACK
            state.warn(
                f"{outcome.reason}; deployment will be triggered automatically by the git push"
            )
        elif isinstance(outcome, TriggerFailed):
            state.method = DeploymentMethod.NONE
            state.warn(f"{outcome.reason}; no deployment was triggered")
        else:
            raise TypeError(f"Unknown trigger outcome: {outcome!r}")

    async def _monitor(self, state: PipelineState) -> None:
        """Best-effort look at the new deployment, bounded in time."""
        if state.method is DeploymentMethod.CLI and state.url:
            responding = await self.checker.check(
                state.url,
                max_attempts=1,
                delay=0,
                timeout=self.monitor_check_timeout,
            )
            self.logger.info(
                "orchestrator.monitor",
                deployment_id=state.deployment_id,
                url=state.url,
                responding=responding,
            )

        if self.monitor_wait > 0:
            await asyncio.sleep(self.monitor_wait)

    async def _emit(
        self,
        progress: ProgressCallback,
        stage: PipelineStage,
        message: str,
    ) -> None:
        # A broken UI sink must not break the deployment
        try:
            await progress(
                ProgressEvent(step=stage, message=message, percent=STAGE_PERCENT[stage])
            )
        except Exception as e:
            self.logger.warning("orchestrator.progress_failed", step=stage.value, error=str(e))
