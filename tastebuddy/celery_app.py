"""Celery application configuration."""

from datetime import timedelta

from celery import Celery

from tastebuddy.config import get_settings

settings = get_settings()

app = Celery(
    "tastebuddy",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["tastebuddy.tasks.canonicalization", "tastebuddy.tasks.discounts"],
)

# Celery configuration
app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=1800,  # 30 minutes max per task (full catalog pass)
    task_soft_time_limit=1500,
)

# Periodic jobs, driven by celery-beat
app.conf.beat_schedule = {
    "canonicalize-items": {
        "task": "tastebuddy.tasks.canonicalization.canonicalize_items",
        "schedule": timedelta(hours=settings.canonicalization_interval_hours),
    },
    "refresh-discounts": {
        "task": "tastebuddy.tasks.discounts.refresh_discounts",
        "schedule": timedelta(hours=settings.discount_refresh_interval_hours),
    },
}
