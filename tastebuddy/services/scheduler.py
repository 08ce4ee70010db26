"""Job runner with run history and exclusivity leases.

Celery beat decides *when* a job runs; the scheduler decides *whether* it may
run (lease) and records *what happened* (JobRun). The clock is injectable so
tests can drive single passes deterministically.
"""

import logging
import uuid
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tastebuddy.models.enums import JobStatus
from tastebuddy.models.job import JobLease, JobRun
from tastebuddy.schemas.jobs import JobRunResponse

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(UTC)


def acquire_lease(db: Session, job_name: str, holder: str, now: datetime, ttl: timedelta) -> bool:
    """Take the lease for a job unless someone else holds an unexpired one."""
    try:
        db.add(JobLease(job_name=job_name, holder=holder, acquired_at=now, expires_at=now + ttl))
        db.commit()
        return True
    except IntegrityError:
        db.rollback()

    # A lease exists; take it over only if it has expired
    taken = (
        db.query(JobLease)
        .filter(JobLease.job_name == job_name, JobLease.expires_at <= now)
        .update(
            {
                JobLease.holder: holder,
                JobLease.acquired_at: now,
                JobLease.expires_at: now + ttl,
            },
            synchronize_session=False,
        )
    )
    db.commit()
    return taken == 1


def release_lease(db: Session, job_name: str, holder: str) -> None:
    """Drop the lease if it is still ours."""
    db.query(JobLease).filter(JobLease.job_name == job_name, JobLease.holder == holder).delete(
        synchronize_session=False
    )
    db.commit()


class JobScheduler:
    """Runs jobs and keeps their history."""

    def __init__(self, session_factory: Callable[[], Session], clock: Clock | None = None):
        self.session_factory = session_factory
        self.clock = clock or utcnow

    def run(
        self,
        job_name: str,
        job: Callable[[Session], BaseModel | dict[str, Any]],
        exclusive: bool = False,
        lease_ttl: timedelta = timedelta(hours=1),
    ) -> JobRunResponse:
        """Run a job once and record the outcome.

        Args:
            job_name: name the run is recorded under
            job: callable receiving a fresh session, returning a summary
            exclusive: hold a lease so overlapping runs of the job are skipped
            lease_ttl: how long the lease protects a run that never releases it

        Returns:
            The recorded run; a failed job is reported, not raised
        """
        db = self.session_factory()
        holder = uuid.uuid4().hex
        try:
            if exclusive and not acquire_lease(db, job_name, holder, self.clock(), lease_ttl):
                logger.warning(f"Job {job_name} is already running, skipping")
                now = self.clock()
                run = JobRun(
                    job_name=job_name,
                    status=JobStatus.SKIPPED.value,
                    started_at=now,
                    finished_at=now,
                    error="Another run holds the lease",
                )
                db.add(run)
                db.commit()
                return JobRunResponse.model_validate(run)

            run = JobRun(job_name=job_name, status=JobStatus.RUNNING.value, started_at=self.clock())
            db.add(run)
            db.commit()
            logger.info(f"Job {job_name} started (run {run.id})")

            try:
                result = job(db)
                run.summary = result.model_dump() if isinstance(result, BaseModel) else result
                run.status = JobStatus.SUCCEEDED.value
            except Exception as e:
                logger.error(f"Job {job_name} failed: {e}", exc_info=True)
                db.rollback()
                run.status = JobStatus.FAILED.value
                run.error = str(e)

            run.finished_at = self.clock()
            db.commit()
            logger.info(f"Job {job_name} finished with status {run.status} (run {run.id})")
            return JobRunResponse.model_validate(run)
        finally:
            if exclusive:
                release_lease(db, job_name, holder)
            db.close()

    def history(self, job_name: str | None = None, limit: int = 20) -> list[JobRunResponse]:
        """Most recent runs first, optionally for one job only."""
        db = self.session_factory()
        try:
            query = db.query(JobRun)
            if job_name:
                query = query.filter(JobRun.job_name == job_name)
            runs = query.order_by(JobRun.started_at.desc(), JobRun.id.desc()).limit(limit).all()
            return [JobRunResponse.model_validate(run) for run in runs]
        finally:
            db.close()
