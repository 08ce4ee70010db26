"""Recipe schemas.

A step item exists in three shapes:

- ``StepItemInput``: what a client submits, carrying the full embedded item.
- ``StepItemStored``: what is persisted, only the item reference.
- ``StepItemResponse``: what is returned, the reference joined with its item.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from tastebuddy.schemas.item import ItemInput, ItemResponse

# --- Step Items ---


class StepItemInput(BaseModel):
    """Step item as submitted, with the item embedded by value."""

    amount: float = 1
    unit: str | None = Field(None, max_length=50)
    item: ItemInput


class StepItemStored(BaseModel):
    """Step item as persisted: a reference to an item plus quantity."""

    item_id: int
    amount: float = 1
    unit: str | None = None


class StepItemResponse(BaseModel):
    """Step item with its item joined in."""

    item_id: int
    amount: float
    unit: str | None
    item: ItemResponse


# --- Steps ---


class StepInput(BaseModel):
    """Step as submitted."""

    description: str = Field("", max_length=10000)
    items: list[StepItemInput] = []
    img_url: str | None = Field(None, max_length=1000)
    duration: int | None = None  # minutes


class StepStored(BaseModel):
    """Step as persisted."""

    description: str = ""
    items: list[StepItemStored] = []
    img_url: str | None = None
    duration: int | None = None


class StepResponse(BaseModel):
    """Step with hydrated items."""

    description: str
    items: list[StepItemResponse]
    img_url: str | None
    duration: int | None


# --- Recipe ---


class RecipeInput(BaseModel):
    """Create a new recipe (no id) or replace an existing one (with id)."""

    id: int | None = None
    name: str = Field(..., min_length=1, max_length=255)
    author: str | None = Field(None, max_length=255)
    description: str | None = Field(None, max_length=10000)
    steps: list[StepInput] = []
    url: str | None = Field(None, max_length=1000)
    img_url: str | None = Field(None, max_length=1000)
    duration: int | None = None
    price: int | None = None
    tags: list[str] = []
    likes: int = 0


class RecipeResponse(BaseModel):
    """Recipe response with hydrated steps."""

    id: int
    name: str
    author: str | None
    description: str | None
    steps: list[StepResponse]
    url: str | None
    img_url: str | None
    duration: int | None
    price: int | None
    tags: list[str]
    likes: int
    created_at: datetime | None
    updated_at: datetime | None

    def item_ids(self) -> set[int]:
        """All item ids referenced by any step."""
        return {step_item.item_id for step in self.steps for step_item in step.items}

    def total_duration(self) -> int:
        """Recipe duration, falling back to the sum of step durations."""
        if self.duration is not None:
            return self.duration
        return sum(step.duration or 0 for step in self.steps)


class RecipeSaved(BaseModel):
    """Result of a create-or-update."""

    id: int
    created: bool


# --- Suggestions ---


class ItemQuery(BaseModel):
    """Require (or, with exclude, forbid) an item in matching recipes."""

    id: int
    exclude: bool = False


class SuggestionQuery(BaseModel):
    """Search query for recipe suggestions. Unset fields impose no constraint."""

    items: list[ItemQuery] = []
    tags: list[str] = []
    max_duration: int | None = None
    max_price: int | None = None


class RecipeSuggestion(BaseModel):
    """A recipe matching a suggestion query."""

    model_config = ConfigDict(from_attributes=True)

    recipe_id: int
    recipe: RecipeResponse
    recipe_price: int | None
