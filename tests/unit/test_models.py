"""Unit tests for deployment models."""

import pytest
from pydantic import ValidationError

from storedeploy.core.exceptions import (
    DeploymentStepError,
    PrerequisiteError,
    TaskNotFoundError,
)
from storedeploy.models.deployment import (
    CommandResult,
    DeploymentRequest,
    ProgressEvent,
    PublishOutcome,
    RepositoryState,
)


class TestDeploymentRequest:
    def test_valid(self):
        request = DeploymentRequest(
            store_identity="store-1",
            domain="shop.example.fi",
            display_name="Shop",
        )

        assert request.metadata == {}
        assert len(request.correlation_id) == 32

    @pytest.mark.parametrize(
        "domain",
        ["localhost", "Shop.Example", "https://a.example", "a.example/path", "-a.example", ""],
    )
    def test_invalid_domain(self, domain: str):
        with pytest.raises(ValidationError):
            DeploymentRequest(store_identity="store-1", domain=domain, display_name="Shop")

    def test_frozen(self, deployment_request: DeploymentRequest):
        with pytest.raises(ValidationError):
            deployment_request.domain = "b.example"


class TestProgressEvent:
    def test_percent_bounds(self):
        with pytest.raises(ValidationError):
            ProgressEvent(step="publishing", message="x", percent=101)


class TestCommandResult:
    def test_ok(self):
        assert CommandResult(args=["git"], returncode=0).ok
        assert not CommandResult(args=["git"], returncode=1).ok
        assert not CommandResult(args=["git"], error="git: No such file or directory").ok

    def test_describe(self):
        assert CommandResult(args=["git"], error="missing").describe() == "missing"
        assert CommandResult(args=["git"], returncode=1, stderr=" fatal \n").describe() == "fatal"
        assert CommandResult(args=["git"], returncode=2).describe() == "exited with status 2"

    def test_output_joins_streams(self):
        result = CommandResult(args=["git"], returncode=0, stdout="a", stderr="b")

        assert result.output == "a\nb"


class TestOutcomes:
    def test_publish_content_published(self):
        assert PublishOutcome().content_published
        assert PublishOutcome(staged_files=["x"], committed=True, pushed=True).content_published
        assert not PublishOutcome(staged_files=["x"], committed=True).content_published

    def test_repository_has_remote(self):
        assert not RepositoryState(branch="main").has_remote
        assert RepositoryState(branch="main", remote_url="git@x:y.git").has_remote


class TestExceptions:
    def test_prerequisite_error_lists_missing(self):
        error = PrerequisiteError(["node runtime not found", "No package.json found"])

        assert str(error) == (
            "Prerequisites not met: node runtime not found, No package.json found"
        )
        assert error.missing == ["node runtime not found", "No package.json found"]

    def test_step_error_names_step(self):
        error = DeploymentStepError("publishing", "Git commit failed")

        assert error.step == "publishing"
        assert "publishing" in str(error)

    def test_task_not_found(self):
        assert "deployment_x" in str(TaskNotFoundError("deployment_x"))
