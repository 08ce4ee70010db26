"""Pydantic schemas for API requests and responses."""

from tastebuddy.schemas.discount import (
    DiscountIn,
    DiscountResponse,
    MarketCreate,
    MarketResponse,
    RawDiscount,
)
from tastebuddy.schemas.item import ItemInput, ItemResponse
from tastebuddy.schemas.jobs import CanonicalizationReport, CityRefreshResult, JobRunResponse
from tastebuddy.schemas.recipe import (
    RecipeInput,
    RecipeResponse,
    RecipeSaved,
    RecipeSuggestion,
    StepItemInput,
    StepItemStored,
    SuggestionQuery,
)

__all__ = [
    "ItemInput",
    "ItemResponse",
    "RecipeInput",
    "RecipeResponse",
    "RecipeSaved",
    "RecipeSuggestion",
    "StepItemInput",
    "StepItemStored",
    "SuggestionQuery",
    "MarketCreate",
    "MarketResponse",
    "RawDiscount",
    "DiscountIn",
    "DiscountResponse",
    "CanonicalizationReport",
    "CityRefreshResult",
    "JobRunResponse",
]
