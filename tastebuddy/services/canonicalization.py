"""Item canonicalization: merge same-name items and rewrite recipe references."""

import copy
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tastebuddy.exceptions import PersistenceError
from tastebuddy.models.item import Item
from tastebuddy.models.recipe import Recipe
from tastebuddy.schemas.jobs import CanonicalizationReport, RecipeFailure
from tastebuddy.services.identity import score

logger = logging.getLogger(__name__)


@dataclass
class CanonicalizationPlan:
    """Rewrites computed by a canonicalization pass, not yet persisted."""

    canonical_by_name: dict[str, Any] = field(default_factory=dict)
    remap: dict[int, int] = field(default_factory=dict)
    rewritten_steps: dict[int, list[dict]] = field(default_factory=dict)
    references_rewritten: int = 0
    duplicate_items: int = 0
    recipes_scanned: int = 0


def select_canonical(items: Iterable[Any]) -> dict[str, Any]:
    """Pick the canonical item for every name.

    The highest score wins; on equal scores the first item encountered
    stays canonical, so callers must pass items in a deterministic order.
    """
    canonical: dict[str, Any] = {}
    for item in items:
        current = canonical.get(item.name)
        if current is None:
            canonical[item.name] = item
        elif score(item) > score(current):
            logger.debug(f"Replace item {current.id} with {item.id} for '{item.name}'")
            canonical[item.name] = item
    return canonical


def rewrite_references(steps: list[dict] | None, remap: dict[int, int]) -> tuple[list[dict], int]:
    """Copy the steps with every duplicate item id replaced by its canonical id.

    Returns the new steps and the number of references that changed.
    Ids missing from ``remap`` are kept as they are.
    """
    steps = copy.deepcopy(steps or [])
    changed = 0
    for step in steps:
        for step_item in step.get("items") or []:
            canonical_id = remap.get(step_item.get("item_id"))
            if canonical_id is not None:
                step_item["item_id"] = canonical_id
                changed += 1
    return steps, changed


def canonicalize(items: Sequence[Any], recipes: Sequence[Any]) -> CanonicalizationPlan:
    """Compute which step item references must point at another item.

    Args:
        items: all items, in iteration order (ties resolve to the earliest)
        recipes: objects with ``id`` and ``steps`` in stored shape

    Returns:
        Plan with the duplicate-to-canonical id mapping and the new steps of
        every recipe whose references changed
    """
    plan = CanonicalizationPlan(canonical_by_name=select_canonical(items))
    plan.duplicate_items = len(items) - len(plan.canonical_by_name)
    for item in items:
        canonical = plan.canonical_by_name[item.name]
        if canonical.id != item.id:
            plan.remap[item.id] = canonical.id

    for recipe in recipes:
        plan.recipes_scanned += 1
        steps, changed = rewrite_references(recipe.steps, plan.remap)
        if changed:
            plan.rewritten_steps[recipe.id] = steps
            plan.references_rewritten += changed

    return plan


class CanonicalizationService:
    """Runs a canonicalization pass over the whole catalog."""

    def __init__(self, db: Session):
        self.db = db

    def run(self) -> CanonicalizationReport:
        """Rewrite every reference to a duplicate item.

        Soft-deleted recipes are included since they may be restored. A
        failed write-back is recorded in the report and does not stop the
        remaining recipes from being rewritten.
        """
        try:
            items = self.db.query(Item).order_by(Item.id).all()
            recipes = self.db.query(Recipe).order_by(Recipe.id).all()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not load catalog: {e}") from e

        plan = canonicalize(items, recipes)
        report = CanonicalizationReport(
            recipes_scanned=plan.recipes_scanned,
            duplicate_items=plan.duplicate_items,
        )

        for recipe_id in plan.rewritten_steps:
            try:
                changed = self._write_steps(recipe_id, plan.remap)
            except PersistenceError as e:
                logger.error(f"Failed to rewrite recipe {recipe_id}: {e}")
                report.failures.append(RecipeFailure(recipe_id=recipe_id, error=str(e)))
                continue
            if changed:
                report.recipes_rewritten += 1
                report.references_rewritten += changed

        logger.info(
            f"Canonicalization complete: {report.recipes_rewritten}/{report.recipes_scanned} "
            f"recipes rewritten, {report.references_rewritten} references, "
            f"{len(report.failures)} failures"
        )
        return report

    def _write_steps(self, recipe_id: int, remap: dict[int, int]) -> int:
        """Rewrite the references of a single recipe as currently stored.

        The row is re-read under a row lock, so edits saved since the pass
        loaded the catalog are kept. Returns the number of references changed.
        """
        try:
            recipe = (
                self.db.query(Recipe)
                .filter(Recipe.id == recipe_id)
                .populate_existing()
                .with_for_update()
                .first()
            )
            if recipe is None:
                self.db.rollback()
                return 0
            steps, changed = rewrite_references(recipe.steps, remap)
            if changed:
                recipe.steps = steps
            self.db.commit()
            return changed
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(str(e)) from e
