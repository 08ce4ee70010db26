"""Tests for the job scheduler, background tasks and the jobs API."""

from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest
from celery.exceptions import Retry

from conftest import FIXED_NOW

from tastebuddy.models.discount import Discount
from tastebuddy.models.enums import JobStatus
from tastebuddy.models.job import JobLease, JobRun
from tastebuddy.models.recipe import Recipe
from tastebuddy.schemas.jobs import JobRunResponse
from tastebuddy.tasks.canonicalization import JOB_NAME as CANONICALIZE_JOB
from tastebuddy.tasks.canonicalization import canonicalize_items, run_canonicalization
from tastebuddy.tasks.discounts import (
    city_job_name,
    refresh_city_discounts,
    refresh_discounts,
    run_all_cities_refresh,
    run_city_refresh,
)


def _hold_lease(db, job_name, expires_in):
    db.add(
        JobLease(
            job_name=job_name,
            holder="other-worker",
            acquired_at=FIXED_NOW - timedelta(minutes=5),
            expires_at=FIXED_NOW + expires_in,
        )
    )
    db.commit()


class TestJobScheduler:
    """Tests for recording runs and honouring leases."""

    def test_successful_run_is_recorded(self, db, scheduler):
        run = scheduler.run("noop", lambda session: {"answer": 42})

        assert run.status == JobStatus.SUCCEEDED.value
        assert run.summary == {"answer": 42}
        assert run.error is None
        assert db.query(JobRun).count() == 1

    def test_failed_job_is_recorded_not_raised(self, db, scheduler):
        def boom(session):
            raise RuntimeError("no more cheese")

        run = scheduler.run("explode", boom)

        assert run.status == JobStatus.FAILED.value
        assert run.error == "no more cheese"
        assert run.finished_at is not None

    def test_held_lease_skips_the_run(self, db, scheduler):
        """A second exclusive run while the first holds the lease is skipped."""
        _hold_lease(db, "exclusive", timedelta(minutes=30))
        job = MagicMock(return_value={})

        run = scheduler.run("exclusive", job, exclusive=True)

        assert run.status == JobStatus.SKIPPED.value
        job.assert_not_called()
        # The other holder keeps its lease
        db.expire_all()
        assert db.query(JobLease).one().holder == "other-worker"

    def test_expired_lease_is_taken_over(self, db, scheduler):
        """An abandoned lease does not block the job forever."""
        _hold_lease(db, "exclusive", timedelta(minutes=-1))

        run = scheduler.run("exclusive", lambda session: {}, exclusive=True)

        assert run.status == JobStatus.SUCCEEDED.value
        db.expire_all()
        assert db.query(JobLease).count() == 0

    def test_lease_is_released_after_failure(self, db, scheduler):
        def boom(session):
            raise RuntimeError("boom")

        scheduler.run("exclusive", boom, exclusive=True)

        assert db.query(JobLease).count() == 0
        assert scheduler.run("exclusive", lambda session: {}, exclusive=True).status == "succeeded"

    def test_history_is_newest_first(self, scheduler):
        first = scheduler.run("a", lambda session: {})
        second = scheduler.run("b", lambda session: {})
        third = scheduler.run("a", lambda session: {})

        assert [run.id for run in scheduler.history()] == [third.id, second.id, first.id]
        assert [run.id for run in scheduler.history("a")] == [third.id, first.id]
        assert len(scheduler.history(limit=1)) == 1


class TestTasks:
    """Tests for the job functions behind the Celery tasks."""

    def test_run_canonicalization(self, db, scheduler, make_item, make_recipe):
        weak = make_item("Flour")
        strong = make_item("Flour", type="ingredient")
        recipe = make_recipe("Bread", [weak.id])

        run = run_canonicalization(scheduler)

        assert run.job_name == CANONICALIZE_JOB
        assert run.status == "succeeded"
        assert run.summary["recipes_rewritten"] == 1
        db.expire_all()
        stored = db.query(Recipe).filter(Recipe.id == recipe.id).one()
        assert stored.steps[0]["items"][0]["item_id"] == strong.id

    def test_canonicalization_skipped_while_running(self, db, scheduler):
        _hold_lease(db, CANONICALIZE_JOB, timedelta(minutes=30))

        run = run_canonicalization(scheduler)

        assert run.status == "skipped"

    def test_canonicalize_items_task(self, db, make_item, make_recipe):
        """The Celery task runs a pass and returns the recorded run."""
        weak = make_item("Flour")
        make_item("Flour", type="ingredient")
        make_recipe("Bread", [weak.id])

        result = canonicalize_items()

        assert result["status"] == "succeeded"
        assert result["summary"]["references_rewritten"] == 1

    def test_run_city_refresh(self, db, scheduler, registry, make_market, fake_source):
        make_market("e-1", "Konstanz")
        registry.register("edeka", fake_source("edeka", {"e-1": [{"title": "Pasta"}]}))

        run = run_city_refresh("Konstanz", scheduler, registry)

        assert run.job_name == city_job_name("Konstanz")
        assert run.summary["discounts_stored"] == 1
        assert db.query(Discount).count() == 1

    def test_run_all_cities_refresh(self, db, scheduler, registry, make_market, fake_source):
        make_market("e-1", "Konstanz")
        make_market("e-2", "Berlin")
        registry.register(
            "edeka",
            fake_source("edeka", {"e-1": [{"title": "Pasta"}], "e-2": RuntimeError("down")}),
        )

        run = run_all_cities_refresh(["Konstanz", "Berlin"], scheduler, registry)

        assert run.status == "succeeded"
        assert run.summary["Konstanz"]["discounts_stored"] == 1
        assert run.summary["Berlin"]["markets_failed"] == 1

    @patch("tastebuddy.tasks.discounts.group")
    def test_refresh_discounts_fans_out_per_city(self, mock_group):
        """One subtask is queued for each configured city."""
        mock_result = MagicMock()
        mock_result.id = "group-123"
        mock_group.return_value.apply_async.return_value = mock_result

        result = refresh_discounts()

        signatures = list(mock_group.call_args.args[0])
        assert [sig.args for sig in signatures] == [(city,) for city in result["cities"]]
        assert result["group_id"] == "group-123"
        mock_result.save.assert_called_once()

    @patch("tastebuddy.tasks.discounts.run_city_refresh")
    def test_failed_city_refresh_is_retried(self, mock_refresh):
        """A city run recorded as failed schedules a retry."""
        mock_refresh.return_value = JobRunResponse(
            id=1,
            job_name=city_job_name("Konstanz"),
            status=JobStatus.FAILED.value,
            started_at=FIXED_NOW,
            finished_at=FIXED_NOW,
            summary=None,
            error="connection refused",
        )

        with pytest.raises(Retry):
            refresh_city_discounts("Konstanz")
        mock_refresh.assert_called_once_with("Konstanz")

    @patch("tastebuddy.tasks.discounts.run_city_refresh")
    def test_successful_city_refresh_returns_run(self, mock_refresh):
        mock_refresh.return_value = JobRunResponse(
            id=1,
            job_name=city_job_name("Konstanz"),
            status=JobStatus.SUCCEEDED.value,
            started_at=FIXED_NOW,
            finished_at=FIXED_NOW,
            summary={"discounts_stored": 3},
            error=None,
        )

        result = refresh_city_discounts("Konstanz")

        assert result["status"] == "succeeded"
        assert result["summary"] == {"discounts_stored": 3}


# --- API ---


def test_run_canonicalization_endpoint(client, make_item, make_recipe):
    """Test triggering a canonicalization pass over HTTP."""
    weak = make_item("Salt")
    make_item("Salt", type="ingredient")
    make_recipe("Soup", [weak.id])

    response = client.post(f"/api/v1/jobs/{CANONICALIZE_JOB}/run")
    assert response.status_code == 200
    assert response.json()["summary"]["recipes_rewritten"] == 1

    response = client.get("/api/v1/jobs", params={"job_name": CANONICALIZE_JOB})
    assert response.status_code == 200
    assert len(response.json()) == 1


def test_run_discount_refresh_endpoint(client, registry, make_market, fake_source):
    """Test triggering a discount refresh over HTTP."""
    make_market("e-1", "Konstanz")
    registry.register("edeka", fake_source("edeka", {"e-1": [{"title": "Pasta"}]}))

    response = client.post("/api/v1/jobs/refresh_discounts/run")
    assert response.status_code == 200
    summary = response.json()["summary"]
    assert summary["Konstanz"]["discounts_stored"] == 1
    # Configured cities without markets report their error
    assert summary["Berlin"]["error"] is not None


def test_run_unknown_job(client):
    """Test that unknown jobs are not found."""
    response = client.post("/api/v1/jobs/make_coffee/run")
    assert response.status_code == 404
