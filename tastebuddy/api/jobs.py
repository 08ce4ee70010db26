"""Background job API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from tastebuddy.api.dependencies import get_discount_registry, get_scheduler
from tastebuddy.exceptions import NotFoundError
from tastebuddy.schemas.jobs import JobRunResponse
from tastebuddy.services.discount_sources import DiscountSourceRegistry
from tastebuddy.services.scheduler import JobScheduler
from tastebuddy.tasks import canonicalization, discounts

router = APIRouter(prefix="/api/v1/jobs", tags=["jobs"])


@router.get("", response_model=list[JobRunResponse])
def list_job_runs(
    scheduler: Annotated[JobScheduler, Depends(get_scheduler)],
    job_name: str | None = Query(default=None, description="Only runs of this job"),
    limit: int = Query(default=20, ge=1, le=200),
):
    """Get the most recent job runs."""
    return scheduler.history(job_name, limit)


@router.post("/{job_name}/run", response_model=JobRunResponse)
def run_job(
    job_name: str,
    scheduler: Annotated[JobScheduler, Depends(get_scheduler)],
    registry: Annotated[DiscountSourceRegistry, Depends(get_discount_registry)],
):
    """Run a job now and wait for it to finish."""
    if job_name == canonicalization.JOB_NAME:
        return canonicalization.run_canonicalization(scheduler)
    if job_name == discounts.JOB_NAME:
        return discounts.run_all_cities_refresh(scheduler=scheduler, registry=registry)
    raise NotFoundError(f"Unknown job {job_name}")
