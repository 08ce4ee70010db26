"""Recipe API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from tastebuddy.api.dependencies import get_recipe_service
from tastebuddy.exceptions import ValidationError
from tastebuddy.schemas.recipe import (
    RecipeInput,
    RecipeResponse,
    RecipeSaved,
    RecipeSuggestion,
    SuggestionQuery,
)
from tastebuddy.services.recipe_service import RecipeService
from tastebuddy.services.suggestion import filter_recipes

router = APIRouter(prefix="/api/v1/recipes", tags=["recipes"])


def parse_item_ids(item_ids: str) -> list[int]:
    """Parse a comma-separated list of item ids."""
    try:
        return [int(part) for part in item_ids.split(",") if part.strip()]
    except ValueError as e:
        raise ValidationError(f"Invalid item ids: {item_ids}") from e


# --- Static routes first (before /{recipe_id}) ---


@router.get("", response_model=list[RecipeResponse])
def list_recipes(service: Annotated[RecipeService, Depends(get_recipe_service)]):
    """List all recipes."""
    return service.list_recipes()


@router.get("/random", response_model=RecipeResponse)
def get_random_recipe(service: Annotated[RecipeService, Depends(get_recipe_service)]):
    """Get a random recipe."""
    return service.random_recipe()


@router.get("/by-items/{item_ids}", response_model=list[RecipeResponse])
def find_recipes_by_items(
    item_ids: str,
    service: Annotated[RecipeService, Depends(get_recipe_service)],
):
    """Find recipes using any of the given (comma-separated) items."""
    return service.find_recipes_by_item_ids(parse_item_ids(item_ids))


@router.post("/suggest", response_model=list[RecipeSuggestion])
def suggest_recipes(
    query: SuggestionQuery,
    service: Annotated[RecipeService, Depends(get_recipe_service)],
):
    """Suggest recipes matching items, tags, duration and price constraints."""
    return filter_recipes(service.list_recipes(), query)


@router.post("", response_model=RecipeSaved)
def save_recipe(
    recipe_data: RecipeInput,
    service: Annotated[RecipeService, Depends(get_recipe_service)],
):
    """Create a recipe, or update it in place when it carries an id."""
    return service.save_recipe(recipe_data)


# --- Dynamic routes ---


@router.get("/{recipe_id}", response_model=RecipeResponse)
def get_recipe(
    recipe_id: int,
    service: Annotated[RecipeService, Depends(get_recipe_service)],
):
    """Get a specific recipe with its items."""
    return service.get_recipe(recipe_id)


@router.delete("/{recipe_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_recipe(
    recipe_id: int,
    service: Annotated[RecipeService, Depends(get_recipe_service)],
):
    """Soft delete a recipe."""
    service.delete_recipe(recipe_id)
