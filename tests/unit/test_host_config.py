"""Unit tests for the host configurator."""

import json
from pathlib import Path

import pytest

from storedeploy.core.exceptions import HostConfigError
from storedeploy.steps.host_config import HostConfigurator, required_manifest


@pytest.fixture
def configurator(project_dir: Path) -> HostConfigurator:
    return HostConfigurator(
        project_dir,
        manifest_name="vercel.json",
        function_entry="api/serverless.js",
        max_duration=30,
        branch="main",
    )


class TestRequiredManifest:
    def test_fragment(self):
        fragment = required_manifest("api/serverless.js", 30, "main")

        assert fragment["version"] == 2
        assert fragment["functions"] == {"api/serverless.js": {"maxDuration": 30}}
        assert fragment["routes"] == [{"src": "/(.*)", "dest": "/api/serverless.js"}]
        assert fragment["env"] == {"NODE_ENV": "production"}
        assert fragment["git"] == {"deploymentEnabled": {"main": True}}


class TestHostConfigurator:
    """Tests for HostConfigurator."""

    def test_creates_manifest(self, configurator: HostConfigurator, project_dir: Path):
        configurator.configure()

        written = json.loads((project_dir / "vercel.json").read_text())
        assert written == required_manifest("api/serverless.js", 30, "main")

    def test_preserves_unmanaged_keys(self, configurator: HostConfigurator, project_dir: Path):
        (project_dir / "vercel.json").write_text(
            json.dumps({"regions": ["fra1"], "version": 1, "cleanUrls": True})
        )

        merged = configurator.configure()

        assert merged["regions"] == ["fra1"]
        assert merged["cleanUrls"] is True
        assert merged["version"] == 2

    def test_managed_keys_replaced_wholesale(
        self, configurator: HostConfigurator, project_dir: Path
    ):
        (project_dir / "vercel.json").write_text(json.dumps({"env": {"API_KEY": "x"}}))

        merged = configurator.configure()

        assert merged["env"] == {"NODE_ENV": "production"}

    def test_idempotent(self, configurator: HostConfigurator, project_dir: Path):
        configurator.configure()
        first = (project_dir / "vercel.json").read_text()

        configurator.configure()

        assert (project_dir / "vercel.json").read_text() == first

    def test_invalid_json_raises(self, configurator: HostConfigurator, project_dir: Path):
        (project_dir / "vercel.json").write_text("{not json")

        with pytest.raises(HostConfigError, match="Invalid vercel.json") as exc_info:
            configurator.configure()

        assert exc_info.value.details["path"].endswith("vercel.json")

    def test_non_object_raises(self, configurator: HostConfigurator, project_dir: Path):
        (project_dir / "vercel.json").write_text("[]")

        with pytest.raises(HostConfigError, match="must contain a JSON object"):
            configurator.load()
