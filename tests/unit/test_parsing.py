"""Unit tests for hosting CLI output parsing."""

from storedeploy.steps.parsing import extract_deployment_id, extract_deployment_url, mentions


class TestExtractDeploymentUrl:
    def test_url_on_last_line(self):
        output = """
Vercel CLI 33.0.1
Deploying acme/stores
https://stores-abc123.vercel.app
"""
        assert extract_deployment_url(output) == "https://stores-abc123.vercel.app"

    def test_first_url_wins(self):
        output = "Preview: https://one-x1.vercel.app\nProduction: https://two-x2.vercel.app"
        assert extract_deployment_url(output) == "https://one-x1.vercel.app"

    def test_url_with_team_suffix(self):
        output = "Production: https://stores-k3j2-acme.vercel.app [2s]"
        assert extract_deployment_url(output) == "https://stores-k3j2-acme.vercel.app"

    def test_not_found(self):
        assert extract_deployment_url("Error: no credentials found") is None

    def test_ignores_other_hosts(self):
        assert extract_deployment_url("Inspect: https://vercel.com/acme/stores") is None

    def test_empty(self):
        assert extract_deployment_url("") is None
        assert extract_deployment_url(None) is None


class TestExtractDeploymentId:
    def test_found(self):
        assert extract_deployment_id("Deployment dpl_abc123xyz complete") == "dpl_abc123xyz"

    def test_not_found(self):
        assert extract_deployment_id("https://stores-abc.vercel.app") is None


def test_mentions_is_case_insensitive():
    assert mentions("Error: Domain NOT FOUND", "not found")
    assert not mentions("ok", "not found", "missing")
