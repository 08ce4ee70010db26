"""SQLAlchemy models."""

from tastebuddy.models.discount import Discount
from tastebuddy.models.item import Item
from tastebuddy.models.job import JobLease, JobRun
from tastebuddy.models.market import Market
from tastebuddy.models.recipe import Recipe

__all__ = [
    "Item",
    "Recipe",
    "Market",
    "Discount",
    "JobRun",
    "JobLease",
]
