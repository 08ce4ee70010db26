"""Celery tasks for item canonicalization."""

import logging
from datetime import timedelta

from tastebuddy.celery_app import app as celery_app
from tastebuddy.config import get_settings
from tastebuddy.database import SessionLocal
from tastebuddy.schemas.jobs import JobRunResponse
from tastebuddy.services.canonicalization import CanonicalizationService
from tastebuddy.services.scheduler import JobScheduler

logger = logging.getLogger(__name__)

JOB_NAME = "canonicalize_items"


def run_canonicalization(scheduler: JobScheduler | None = None) -> JobRunResponse:
    """Run one canonicalization pass over the whole catalog.

    Holds the job's lease for the duration, so a pass started while another
    one is still running is recorded as skipped.
    """
    scheduler = scheduler or JobScheduler(SessionLocal)
    settings = get_settings()
    return scheduler.run(
        JOB_NAME,
        lambda db: CanonicalizationService(db).run(),
        exclusive=True,
        lease_ttl=timedelta(seconds=settings.canonicalization_lease_seconds),
    )


@celery_app.task
def canonicalize_items() -> dict:
    """Merge duplicate items and rewrite recipe references.

    This task runs every few hours via celery-beat.

    Returns:
        dict with the recorded job run
    """
    run = run_canonicalization()
    logger.info(f"Canonicalization run {run.id}: {run.status}")
    return run.model_dump(mode="json")
