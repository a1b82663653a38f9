"""Pytest configuration and fixtures."""

import asyncio
import json
from pathlib import Path

import httpx
import pytest

from storedeploy.core.service import DeploymentService
from storedeploy.models.deployment import (
    CommandResult,
    DeploymentMethod,
    DeploymentRequest,
    DeploymentResult,
    PipelineStage,
    ProgressEvent,
)
from storedeploy.steps.domains import DomainBinder
from storedeploy.steps.liveness import LivenessChecker


class FakeRunner:
    """In-memory stand-in for ProcessRunner.

    Commands succeed with empty output unless a rule registered with
    ``on``/``fail`` matches the start of the command line. Later rules win.
    """

    def __init__(self):
        self.calls: list[str] = []
        self._rules: list[tuple[str, dict]] = []

    def on(
        self,
        prefix: str,
        *,
        returncode: int | None = 0,
        stdout: str = "",
        stderr: str = "",
        error: str | None = None,
        timed_out: bool = False,
    ) -> None:
        self._rules.append(
            (
                prefix,
                {
                    "returncode": returncode,
                    "stdout": stdout,
                    "stderr": stderr,
                    "error": error,
                    "timed_out": timed_out,
                },
            )
        )

    def fail(self, prefix: str, stderr: str = "fatal: error", returncode: int = 1) -> None:
        self.on(prefix, returncode=returncode, stderr=stderr)

    def missing(self, prefix: str) -> None:
        """Simulate an executable that is not installed."""
        binary = prefix.split()[0]
        self.on(prefix, returncode=None, error=f"{binary}: No such file or directory")

    async def run(self, args, *, timeout=None, cwd=None) -> CommandResult:
        command = " ".join(str(arg) for arg in args)
        self.calls.append(command)
        for prefix, outcome in reversed(self._rules):
            if command.startswith(prefix):
                return CommandResult(args=[str(arg) for arg in args], **outcome)
        return CommandResult(args=[str(arg) for arg in args], returncode=0)

    def ran(self, prefix: str) -> bool:
        return any(call.startswith(prefix) for call in self.calls)

    def count(self, prefix: str) -> int:
        return sum(1 for call in self.calls if call.startswith(prefix))


@pytest.fixture
def fake_runner() -> FakeRunner:
    """A runner where every command succeeds silently."""
    return FakeRunner()


@pytest.fixture
def healthy_runner() -> FakeRunner:
    """A runner that behaves like a configured repo with a working host CLI."""
    runner = FakeRunner()
    runner.on("git rev-parse --abbrev-ref HEAD", stdout="main\n")
    runner.on("git remote get-url origin", stdout="git@github.com:acme/stores.git\n")
    runner.on("git diff --cached --name-only", stdout="stores/a.example/index.html\n")
    runner.on("git rev-list --count", stdout="0\n")
    runner.on("node --version", stdout="v20.11.0\n")
    runner.on(
        "vercel deploy --prod --yes",
        stdout="Vercel CLI 33.0.1\nInspect: https://vercel.com/acme/dpl_8xYz12\nhttps://stores-abc123.vercel.app\n",
    )
    return runner


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """A deployable project root."""
    (tmp_path / "package.json").write_text(json.dumps({"name": "stores"}))
    (tmp_path / "stores").mkdir()
    return tmp_path


@pytest.fixture
def deployment_request() -> DeploymentRequest:
    """Sample deployment request."""
    return DeploymentRequest(
        store_identity="store-42",
        domain="a.example",
        display_name="Clipia",
        metadata={"country": "FI", "currency": "EUR"},
    )


@pytest.fixture
def live_site() -> httpx.MockTransport:
    """A site that answers every request with 200."""
    return httpx.MockTransport(lambda request: httpx.Response(200))


@pytest.fixture
def dead_site() -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("getaddrinfo ENOTFOUND", request=request)

    return httpx.MockTransport(handler)


class FakeOrchestrator:
    """Pipeline stand-in: reports one progress step, then succeeds or raises."""

    def __init__(self):
        self.gate = asyncio.Event()
        self.gate.set()
        self.error: Exception | None = None
        self.runs: list[str] = []

    async def run(self, request, deployment_id=None, progress=None) -> DeploymentResult:
        self.runs.append(request.domain)
        await self.gate.wait()
        if progress is not None:
            await progress(
                ProgressEvent(step=PipelineStage.PUBLISHING, message="Publishing", percent=40)
            )
        if self.error is not None:
            raise self.error
        return DeploymentResult(
            success=True,
            deployment_id=deployment_id,
            is_live=True,
            method=DeploymentMethod.CLI,
            url="https://stores-abc123.vercel.app",
            domain=request.domain,
        )


@pytest.fixture
def fake_orchestrator() -> FakeOrchestrator:
    return FakeOrchestrator()


@pytest.fixture
async def service(fake_orchestrator, fake_runner, live_site, project_dir):
    """A started deployment service around the fake pipeline."""
    service = DeploymentService(
        orchestrator=fake_orchestrator,
        checker=LivenessChecker(transport=live_site),
        domains=DomainBinder(fake_runner, project_dir, host_binary="vercel", token="", scope=""),
        capacity=1,
        cooldown=0,
    )
    await service.start()
    yield service
    fake_orchestrator.gate.set()
    await service.shutdown()
