"""Host configurator.

Merges the settings the hosting platform needs into its project manifest
(``vercel.json``), keeping any keys it does not manage.
"""

import json
from pathlib import Path
from typing import Any

from storedeploy.config import settings
from storedeploy.core.exceptions import HostConfigError
from storedeploy.steps.base import PipelineComponent


def required_manifest(
    function_entry: str,
    max_duration: int,
    branch: str,
) -> dict[str, Any]:
    """The manifest fragment every deployment needs."""
    return {
        "version": 2,
        "functions": {
            function_entry: {
                "maxDuration": max_duration,
            }
        },
        "routes": [
            {
                "src": "/(.*)",
                "dest": f"/{function_entry}",
            }
        ],
        "env": {
            "NODE_ENV": "production",
        },
        "git": {
            "deploymentEnabled": {
                branch: True,
            }
        },
    }


class HostConfigurator(PipelineComponent):
    """Writes the hosting manifest; no external commands involved."""

    def __init__(
        self,
        project_root: str | Path | None = None,
        manifest_name: str | None = None,
        function_entry: str | None = None,
        max_duration: int | None = None,
        branch: str | None = None,
    ):
        super().__init__(project_root=project_root)
        self.manifest_path = self.project_root / (manifest_name or settings.host_manifest)
        self.fragment = required_manifest(
            function_entry or settings.host_function_entry,
            settings.host_function_max_duration if max_duration is None else max_duration,
            branch or settings.deploy_branch,
        )

    @property
    def name(self) -> str:
        return "host_config"

    def load(self) -> dict[str, Any]:
        """Read the current manifest, or an empty one if absent."""
        if not self.manifest_path.exists():
            return {}

        try:
            with open(self.manifest_path, encoding="utf-8") as f:
                current = json.load(f)
        except json.JSONDecodeError as e:
            raise HostConfigError(
                f"Invalid {self.manifest_path.name}: {e}",
                path=str(self.manifest_path),
            )
        except OSError as e:
            raise HostConfigError(
                f"Could not read {self.manifest_path.name}: {e}",
                path=str(self.manifest_path),
            )

        if not isinstance(current, dict):
            raise HostConfigError(
                f"{self.manifest_path.name} must contain a JSON object",
                path=str(self.manifest_path),
            )
        return current

    def configure(self) -> dict[str, Any]:
        """Shallow-merge the required fragment into the manifest and write it.

        Raises:
            HostConfigError: If the existing manifest is unreadable or the
                merged one cannot be written.
        """
        merged = {**self.load(), **self.fragment}

        try:
            self.manifest_path.write_text(
                json.dumps(merged, indent=2) + "\n",
                encoding="utf-8",
            )
        except OSError as e:
            raise HostConfigError(
                f"Could not write {self.manifest_path.name}: {e}",
                path=str(self.manifest_path),
            )

        self.logger.info("host_config.updated", path=str(self.manifest_path))
        return merged
