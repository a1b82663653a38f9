"""Parsing of hosting CLI output."""

import re

DEPLOYMENT_URL_PATTERN = re.compile(r"https://[a-zA-Z0-9.-]+\.vercel\.app")
DEPLOYMENT_ID_PATTERN = re.compile(r"\bdpl_[a-zA-Z0-9]+")


def extract_deployment_url(output: str | None) -> str | None:
    """Extract the deployment URL from hosting CLI output.

    Returns the first ``https://<name>.vercel.app`` URL found, or None.
    """
    if not output:
        return None

    match = DEPLOYMENT_URL_PATTERN.search(output)
    if match:
        return match.group(0)
    return None


def extract_deployment_id(output: str | None) -> str | None:
    """Extract a host deployment ID (``dpl_...``) from CLI output."""
    if not output:
        return None

    match = DEPLOYMENT_ID_PATTERN.search(output)
    if match:
        return match.group(0)
    return None


def mentions(output: str, *needles: str) -> bool:
    """Case-insensitive check whether any needle appears in output."""
    lowered = output.lower()
    return any(needle.lower() in lowered for needle in needles)
