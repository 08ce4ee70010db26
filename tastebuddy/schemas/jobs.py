"""Schemas for background job results and history."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class RecipeFailure(BaseModel):
    """A recipe whose rewritten references could not be written back."""

    recipe_id: int
    error: str


class CanonicalizationReport(BaseModel):
    """Outcome of one canonicalization pass."""

    recipes_scanned: int = 0
    recipes_rewritten: int = 0
    references_rewritten: int = 0
    duplicate_items: int = 0
    failures: list[RecipeFailure] = []


class CityRefreshResult(BaseModel):
    """Outcome of refreshing the discounts of one city."""

    city: str
    markets: int = 0
    markets_failed: int = 0
    discounts_fetched: int = 0
    discounts_stored: int = 0
    discounts_failed: int = 0
    error: str | None = None


class JobRunResponse(BaseModel):
    """Job run history entry."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    job_name: str
    status: str
    started_at: datetime
    finished_at: datetime | None
    summary: dict[str, Any] | None
    error: str | None
