"""Recipe service: normalization on write, hydration on read."""

import logging
import random
from collections.abc import Iterable
from datetime import UTC, datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tastebuddy.exceptions import NotFoundError, PersistenceError
from tastebuddy.models.item import Item
from tastebuddy.models.recipe import Recipe
from tastebuddy.schemas.item import ItemResponse
from tastebuddy.schemas.recipe import (
    RecipeInput,
    RecipeResponse,
    RecipeSaved,
    StepItemResponse,
    StepItemStored,
    StepResponse,
    StepStored,
)
from tastebuddy.services.item_service import ItemService

logger = logging.getLogger(__name__)


def referenced_item_ids(recipes: Iterable[Recipe]) -> set[int]:
    """Collect every item id referenced by the stored steps of the recipes."""
    return {
        step_item["item_id"]
        for recipe in recipes
        for step in recipe.steps or []
        for step_item in step.get("items") or []
    }


def hydrate(recipe: Recipe, items_by_id: dict[int, Item]) -> RecipeResponse:
    """Join the stored item references of a recipe with their items.

    A reference whose item is gone becomes a placeholder item carrying only
    the id, so one dangling reference does not fail the whole recipe.
    """
    steps = []
    for raw_step in recipe.steps or []:
        stored = StepStored.model_validate(raw_step)
        step_items = []
        for step_item in stored.items:
            item = items_by_id.get(step_item.item_id)
            if item is not None:
                item_response = ItemResponse.model_validate(item)
            else:
                item_response = ItemResponse(id=step_item.item_id, name="")
            step_items.append(
                StepItemResponse(
                    item_id=step_item.item_id,
                    amount=step_item.amount,
                    unit=step_item.unit,
                    item=item_response,
                )
            )
        steps.append(
            StepResponse(
                description=stored.description,
                items=step_items,
                img_url=stored.img_url,
                duration=stored.duration,
            )
        )

    return RecipeResponse(
        id=recipe.id,
        name=recipe.name,
        author=recipe.author,
        description=recipe.description,
        steps=steps,
        url=recipe.url,
        img_url=recipe.img_url,
        duration=recipe.duration,
        price=recipe.price,
        tags=recipe.tags or [],
        likes=recipe.likes or 0,
        created_at=recipe.created_at,
        updated_at=recipe.updated_at,
    )


class RecipeService:
    """Service for recipe-related operations."""

    def __init__(self, db: Session, item_service: ItemService | None = None):
        self.db = db
        self.item_service = item_service or ItemService(db)

    # --- Write path ---

    def prepare_for_storage(self, recipe_data: RecipeInput) -> list[dict]:
        """Replace every embedded item with a reference to a stored item.

        Unknown items are created (or matched by exact name). Running this on
        a recipe whose items already carry ids changes nothing.
        """
        steps = []
        for step in recipe_data.steps:
            step_items = []
            for step_item in step.items:
                item_id = self.item_service.resolve_reference(step_item.item)
                step_items.append(
                    StepItemStored(item_id=item_id, amount=step_item.amount, unit=step_item.unit)
                )
            steps.append(
                StepStored(
                    description=step.description,
                    items=step_items,
                    img_url=step.img_url,
                    duration=step.duration,
                ).model_dump()
            )
        return steps

    def save_recipe(self, recipe_data: RecipeInput) -> RecipeSaved:
        """Insert a new recipe, or update an existing one in place."""
        try:
            recipe = None
            if recipe_data.id is not None:
                recipe = self._get_active(recipe_data.id)

            steps = self.prepare_for_storage(recipe_data)
            fields = recipe_data.model_dump(exclude={"id", "steps"})

            if recipe is None:
                recipe = Recipe(steps=steps, created_at=datetime.now(UTC), **fields)
                self.db.add(recipe)
                created = True
            else:
                for key, value in fields.items():
                    setattr(recipe, key, value)
                recipe.steps = steps
                created = False

            self.db.commit()
            self.db.refresh(recipe)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Could not save recipe '{recipe_data.name}': {e}") from e
        except Exception:
            self.db.rollback()
            raise

        action = "Added" if created else "Updated"
        logger.info(f"{action} recipe {recipe.name} ({recipe.id})")
        return RecipeSaved(id=recipe.id, created=created)

    def delete_recipe(self, recipe_id: int) -> None:
        """Soft delete a recipe; it stays in storage but disappears from reads."""
        recipe = self._get_active(recipe_id)
        try:
            recipe.soft_delete()
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Could not delete recipe {recipe_id}: {e}") from e
        logger.info(f"Deleted recipe {recipe_id}")

    # --- Read path ---

    def get_recipe(self, recipe_id: int) -> RecipeResponse:
        """Get a single hydrated recipe."""
        recipe = self._get_active(recipe_id)
        return self._hydrate_all([recipe])[0]

    def list_recipes(self) -> list[RecipeResponse]:
        """Get all recipes that are not deleted, hydrated."""
        try:
            recipes = (
                self.db.query(Recipe)
                .filter(Recipe.deleted_at.is_(None))
                .order_by(Recipe.id)
                .all()
            )
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not load recipes: {e}") from e
        return self._hydrate_all(recipes)

    def random_recipe(self, rng: random.Random | None = None) -> RecipeResponse:
        """Pick a random recipe."""
        recipes = self.list_recipes()
        if not recipes:
            raise NotFoundError("No recipes found")
        return (rng or random).choice(recipes)

    def find_recipes_by_item_ids(self, item_ids: Iterable[int]) -> list[RecipeResponse]:
        """Get recipes that use any of the given items, each recipe once."""
        wanted = set(item_ids)
        return [recipe for recipe in self.list_recipes() if recipe.item_ids() & wanted]

    def _get_active(self, recipe_id: int) -> Recipe:
        """Get a recipe that is not deleted."""
        try:
            recipe = (
                self.db.query(Recipe)
                .filter(Recipe.id == recipe_id, Recipe.deleted_at.is_(None))
                .first()
            )
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not load recipe {recipe_id}: {e}") from e
        if not recipe:
            raise NotFoundError(f"Recipe {recipe_id} not found")
        return recipe

    def _hydrate_all(self, recipes: list[Recipe]) -> list[RecipeResponse]:
        items_by_id = self.item_service.get_items_by_ids(referenced_item_ids(recipes))
        return [hydrate(recipe, items_by_id) for recipe in recipes]
