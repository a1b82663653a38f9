"""Dependency injection for API endpoints."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from storedeploy.core.service import DeploymentService


async def get_service(request: Request) -> DeploymentService:
    """Get the deployment service owned by the application."""
    service = getattr(request.app.state, "deployment_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Deployment service is not running",
        )
    return service


# Type aliases for cleaner signatures
ServiceDep = Annotated[DeploymentService, Depends(get_service)]
