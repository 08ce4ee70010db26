"""Recipe suggestions: multi-predicate filtering over hydrated recipes."""

import logging

from tastebuddy.schemas.recipe import ItemQuery, RecipeResponse, RecipeSuggestion, SuggestionQuery

logger = logging.getLogger(__name__)


def matches_items(recipe: RecipeResponse, item_queries: list[ItemQuery]) -> bool:
    """Every queried item is present, or absent when it is excluded."""
    recipe_items = recipe.item_ids()
    return all((query.id in recipe_items) != query.exclude for query in item_queries)


def matches_tags(recipe: RecipeResponse, tags: list[str]) -> bool:
    """The recipe carries every requested tag."""
    return set(tags) <= set(recipe.tags)


def matches_duration(recipe: RecipeResponse, max_duration: int | None) -> bool:
    """The recipe is done within max_duration minutes."""
    if max_duration is None:
        return True
    return recipe.total_duration() <= max_duration


def matches_price(recipe: RecipeResponse, max_price: int | None) -> bool:
    """The recipe costs at most max_price. Unpriced recipes fail a price bound."""
    if max_price is None:
        return True
    return recipe.price is not None and recipe.price <= max_price


def filter_recipes(
    recipes: list[RecipeResponse], query: SuggestionQuery
) -> list[RecipeSuggestion]:
    """Return a suggestion for every recipe satisfying all parts of the query."""
    suggestions = [
        RecipeSuggestion(recipe_id=recipe.id, recipe=recipe, recipe_price=recipe.price)
        for recipe in recipes
        if matches_items(recipe, query.items)
        and matches_tags(recipe, query.tags)
        and matches_duration(recipe, query.max_duration)
        and matches_price(recipe, query.max_price)
    ]
    logger.debug(f"Suggestion query matched {len(suggestions)}/{len(recipes)} recipes")
    return suggestions
