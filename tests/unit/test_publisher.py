"""Unit tests for the change publisher."""

from pathlib import Path

import pytest

from storedeploy.core.exceptions import PublishError
from storedeploy.models.deployment import DeploymentRequest
from storedeploy.steps.publisher import COMMIT_FOOTER, ChangePublisher, build_commit_message


def make_publisher(runner, project_dir: Path) -> ChangePublisher:
    return ChangePublisher(
        runner,
        project_dir,
        stores_dir="stores",
        extra_paths=["vercel.json", "package.json"],
        branch="main",
        remote="origin",
    )


class TestBuildCommitMessage:
    def test_structure(self, deployment_request: DeploymentRequest):
        lines = build_commit_message(deployment_request).split("\n")

        assert lines[0] == "feat: deploy Clipia store"
        assert lines[1] == ""
        assert "- Store: store-42" in lines
        assert "- Domain: a.example" in lines
        assert "- Country: FI" in lines
        assert "- Currency: EUR" in lines
        assert lines[-2] == ""
        assert lines[-1] == COMMIT_FOOTER

    def test_without_metadata(self):
        request = DeploymentRequest(
            store_identity="store-1", domain="b.example", display_name="Shop"
        )

        message = build_commit_message(request)

        assert message.count("\n- ") == 2


class TestChangePublisher:
    """Tests for ChangePublisher."""

    @pytest.mark.asyncio
    async def test_commits_and_pushes(
        self, healthy_runner, project_dir: Path, deployment_request
    ):
        publisher = make_publisher(healthy_runner, project_dir)

        outcome = await publisher.publish(deployment_request)

        assert outcome.committed
        assert outcome.pushed
        assert outcome.content_published
        assert outcome.staged_files == ["stores/a.example/index.html"]
        assert "git add stores/" in healthy_runner.calls
        assert "git add package.json" in healthy_runner.calls
        assert "git add vercel.json" not in healthy_runner.calls
        assert "git push origin main" in healthy_runner.calls

    @pytest.mark.asyncio
    async def test_nothing_staged_skips_commit_and_push(
        self, fake_runner, project_dir: Path, deployment_request
    ):
        fake_runner.on("git diff --cached --name-only", stdout="")
        fake_runner.on("git rev-list --count origin/main..HEAD", stdout="0\n")
        publisher = make_publisher(fake_runner, project_dir)

        outcome = await publisher.publish(deployment_request)

        assert not outcome.committed
        assert not outcome.pushed
        assert outcome.up_to_date
        assert outcome.content_published
        assert not fake_runner.ran("git commit")
        assert not fake_runner.ran("git push")

    @pytest.mark.asyncio
    async def test_stage_failure_raises(self, fake_runner, project_dir: Path, deployment_request):
        fake_runner.fail("git add stores/", stderr="fatal: pathspec 'stores/' did not match")
        publisher = make_publisher(fake_runner, project_dir)

        with pytest.raises(PublishError, match="Could not stage stores/"):
            await publisher.publish(deployment_request)

    @pytest.mark.asyncio
    async def test_commit_failure_raises(self, healthy_runner, project_dir: Path, deployment_request):
        healthy_runner.fail("git commit", stderr="error: gpg failed to sign the data")
        publisher = make_publisher(healthy_runner, project_dir)

        with pytest.raises(PublishError, match="Git commit failed"):
            await publisher.publish(deployment_request)

    @pytest.mark.asyncio
    async def test_nothing_to_commit_is_not_an_error(
        self, healthy_runner, project_dir: Path, deployment_request
    ):
        healthy_runner.on("git commit", returncode=1, stdout="nothing to commit, working tree clean")
        publisher = make_publisher(healthy_runner, project_dir)

        outcome = await publisher.publish(deployment_request)

        assert not outcome.committed
        assert outcome.up_to_date
        assert not healthy_runner.ran("git push")

    @pytest.mark.asyncio
    async def test_sets_upstream_when_missing(
        self, healthy_runner, project_dir: Path, deployment_request
    ):
        healthy_runner.fail(
            "git push origin main",
            stderr="fatal: The current branch main has no upstream branch.",
        )
        publisher = make_publisher(healthy_runner, project_dir)

        outcome = await publisher.publish(deployment_request)

        assert outcome.pushed
        assert "git push --set-upstream origin main" in healthy_runner.calls
        assert outcome.warnings == []

    @pytest.mark.asyncio
    async def test_push_failure_is_a_warning(
        self, healthy_runner, project_dir: Path, deployment_request
    ):
        healthy_runner.fail("git push", stderr="Permission denied (publickey).")
        publisher = make_publisher(healthy_runner, project_dir)

        outcome = await publisher.publish(deployment_request)

        assert outcome.committed
        assert not outcome.pushed
        assert not outcome.content_published
        assert healthy_runner.count("git push") == 1
        assert outcome.warnings == ["Could not push to origin: Permission denied (publickey)."]

    @pytest.mark.asyncio
    async def test_push_disabled(self, healthy_runner, project_dir: Path, deployment_request):
        publisher = make_publisher(healthy_runner, project_dir)

        outcome = await publisher.publish(deployment_request, push=False)

        assert outcome.committed
        assert not outcome.pushed
        assert not healthy_runner.ran("git push")

    @pytest.mark.asyncio
    async def test_pushes_commits_left_by_earlier_run(
        self, healthy_runner, project_dir: Path, deployment_request
    ):
        healthy_runner.on("git diff --cached --name-only", stdout="")
        healthy_runner.on("git rev-list --count origin/main..HEAD", stdout="1\n")
        publisher = make_publisher(healthy_runner, project_dir)

        outcome = await publisher.publish(deployment_request)

        assert not outcome.committed
        assert outcome.unpushed_commits == 1
        assert not outcome.up_to_date
        assert outcome.pushed
        assert outcome.content_published
        assert "git push origin main" in healthy_runner.calls

    @pytest.mark.asyncio
    async def test_unpushed_commits_are_not_published_when_push_fails(
        self, healthy_runner, project_dir: Path, deployment_request
    ):
        healthy_runner.on("git diff --cached --name-only", stdout="")
        healthy_runner.on("git rev-list --count origin/main..HEAD", stdout="2\n")
        healthy_runner.fail("git push", stderr="Permission denied (publickey).")
        publisher = make_publisher(healthy_runner, project_dir)

        outcome = await publisher.publish(deployment_request)

        assert not outcome.pushed
        assert not outcome.content_published
        assert outcome.warnings == ["Could not push to origin: Permission denied (publickey)."]

    @pytest.mark.asyncio
    async def test_unknown_remote_state_attempts_push(
        self, healthy_runner, project_dir: Path, deployment_request
    ):
        healthy_runner.on(
            "git commit", returncode=1, stdout="nothing to commit, working tree clean"
        )
        healthy_runner.fail(
            "git rev-list --count",
            stderr="fatal: ambiguous argument 'origin/main..HEAD': unknown revision",
        )
        publisher = make_publisher(healthy_runner, project_dir)

        outcome = await publisher.publish(deployment_request)

        assert outcome.unpushed_commits is None
        assert outcome.pushed
        assert outcome.content_published

    @pytest.mark.asyncio
    async def test_unpushed_commits_ignored_without_push(
        self, healthy_runner, project_dir: Path, deployment_request
    ):
        healthy_runner.on("git diff --cached --name-only", stdout="")
        publisher = make_publisher(healthy_runner, project_dir)

        outcome = await publisher.publish(deployment_request, push=False)

        assert outcome.up_to_date
        assert not healthy_runner.ran("git rev-list")
        assert not healthy_runner.ran("git push")
