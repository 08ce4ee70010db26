"""Completeness scoring for item records."""

from typing import Any

# Optional attributes that make an item record more useful to clients
SCORED_ATTRIBUTES = ("type", "img_url")


def score(item: Any) -> int:
    """Score how complete an item record is; higher is more complete.

    One point per populated optional attribute, plus one if the record
    already has an identifier. Accepts ORM rows and pydantic models alike.
    """
    points = sum(1 for attr in SCORED_ATTRIBUTES if getattr(item, attr, None))
    if getattr(item, "id", None) is not None:
        points += 1
    return points
