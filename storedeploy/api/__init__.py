"""HTTP API for storedeploy."""
