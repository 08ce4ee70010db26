"""Celery tasks for discount refresh."""

import asyncio
import logging

from celery import group

from tastebuddy.celery_app import app as celery_app
from tastebuddy.config import get_settings
from tastebuddy.database import SessionLocal
from tastebuddy.models.enums import JobStatus
from tastebuddy.schemas.jobs import JobRunResponse
from tastebuddy.services.discount_service import DiscountService, refresh_cities
from tastebuddy.services.discount_sources import DiscountSourceRegistry
from tastebuddy.services.scheduler import JobScheduler

logger = logging.getLogger(__name__)

JOB_NAME = "refresh_discounts"


def city_job_name(city: str) -> str:
    return f"{JOB_NAME}:{city}"


def run_city_refresh(
    city: str,
    scheduler: JobScheduler | None = None,
    registry: DiscountSourceRegistry | None = None,
) -> JobRunResponse:
    """Fetch and store the discounts of one city as a recorded job run."""
    scheduler = scheduler or JobScheduler(SessionLocal)
    return scheduler.run(
        city_job_name(city),
        lambda db: asyncio.run(DiscountService(db, registry=registry).refresh_city(city)),
    )


def run_all_cities_refresh(
    cities: list[str] | None = None,
    scheduler: JobScheduler | None = None,
    registry: DiscountSourceRegistry | None = None,
) -> JobRunResponse:
    """Refresh all configured cities concurrently and wait for every one of them."""
    scheduler = scheduler or JobScheduler(SessionLocal)
    cities = cities if cities is not None else get_settings().discount_cities

    def _job(db) -> dict:
        results = asyncio.run(refresh_cities(cities, scheduler.session_factory, registry))
        return {city: result.model_dump() for city, result in results.items()}

    return scheduler.run(JOB_NAME, _job)


@celery_app.task(bind=True, max_retries=3)
def refresh_city_discounts(self, city: str) -> dict:
    """Refresh the discounts of a single city.

    Args:
        city: City whose markets are queried

    Returns:
        dict with the recorded job run
    """
    try:
        run = run_city_refresh(city)
    except Exception as e:
        logger.error(f"Error refreshing discounts for {city}: {e}", exc_info=True)
        if self.request.retries < self.max_retries:
            raise self.retry(exc=e, countdown=60) from e
        return {"error": str(e)}

    if run.status == JobStatus.FAILED.value and self.request.retries < self.max_retries:
        logger.warning(f"Refreshing discounts for {city} failed: {run.error}, retrying")
        raise self.retry(countdown=60)
    return run.model_dump(mode="json")


@celery_app.task
def refresh_discounts() -> dict:
    """Fan out one refresh task per configured city.

    This task runs via celery-beat. Cities are refreshed independently; the
    returned group id can be used to join on all of them.
    """
    cities = get_settings().discount_cities
    logger.info(f"Start refreshing discounts for {len(cities)} cities")
    result = group(refresh_city_discounts.s(city) for city in cities).apply_async()
    result.save()
    return {"group_id": result.id, "cities": cities}
