"""Domain endpoints."""

from typing import Annotated

from fastapi import APIRouter, Path
from pydantic import BaseModel

from storedeploy.api.deps import ServiceDep

router = APIRouter()

DomainParam = Annotated[
    str,
    Path(min_length=3, max_length=253, pattern=r"^[a-z0-9.-]+$"),
]


class LivenessResponse(BaseModel):
    domain: str
    is_live: bool


class ReleaseStep(BaseModel):
    success: bool
    message: str


class ReleaseResponse(BaseModel):
    domain: str
    success: bool
    steps: list[ReleaseStep]


@router.get("/{domain}/live", response_model=LivenessResponse)
async def check_live(domain: DomainParam, service: ServiceDep) -> LivenessResponse:
    """Check whether the domain serves a 2xx response."""
    return LivenessResponse(domain=domain, is_live=await service.check_live(domain))


@router.delete("/{domain}", response_model=ReleaseResponse)
async def release_domain(domain: DomainParam, service: ServiceDep) -> ReleaseResponse:
    """Remove the domain's alias and detach it from the hosting project."""
    outcomes = await service.release_domain(domain)
    return ReleaseResponse(
        domain=domain,
        success=all(outcome.success for outcome in outcomes),
        steps=[ReleaseStep(success=o.success, message=o.message) for o in outcomes],
    )
