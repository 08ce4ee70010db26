"""Enums for model fields."""

from enum import Enum


class JobStatus(str, Enum):
    """Lifecycle states of a job run."""

    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"
