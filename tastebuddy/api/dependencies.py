"""FastAPI dependencies for services."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from tastebuddy.database import SessionLocal, get_db
from tastebuddy.services.discount_service import DiscountService
from tastebuddy.services.discount_sources import DiscountSourceRegistry, build_default_registry
from tastebuddy.services.item_service import ItemService
from tastebuddy.services.market_service import MarketService
from tastebuddy.services.recipe_service import RecipeService
from tastebuddy.services.scheduler import JobScheduler


def get_item_service(
    db: Annotated[Session, Depends(get_db)],
) -> ItemService:
    """Get item service with dependencies."""
    return ItemService(db)


def get_recipe_service(
    db: Annotated[Session, Depends(get_db)],
) -> RecipeService:
    """Get recipe service with dependencies."""
    return RecipeService(db)


def get_market_service(
    db: Annotated[Session, Depends(get_db)],
) -> MarketService:
    """Get market service with dependencies."""
    return MarketService(db)


def get_discount_registry() -> DiscountSourceRegistry:
    """Get the registry of chain integrations."""
    return build_default_registry()


def get_discount_service(
    db: Annotated[Session, Depends(get_db)],
    registry: Annotated[DiscountSourceRegistry, Depends(get_discount_registry)],
) -> DiscountService:
    """Get discount service with dependencies."""
    return DiscountService(db, registry=registry)


def get_scheduler() -> JobScheduler:
    """Get a job scheduler using the application's session factory."""
    return JobScheduler(SessionLocal)
