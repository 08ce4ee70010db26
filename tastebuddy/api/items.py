"""Item API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from tastebuddy.api.dependencies import get_item_service
from tastebuddy.schemas.item import ItemInput, ItemResponse
from tastebuddy.services.item_service import ItemService

router = APIRouter(prefix="/api/v1/items", tags=["items"])


@router.get("", response_model=list[ItemResponse])
def list_items(service: Annotated[ItemService, Depends(get_item_service)]):
    """List all items."""
    return service.list_items()


@router.get("/{item_id}", response_model=ItemResponse)
def get_item(item_id: int, service: Annotated[ItemService, Depends(get_item_service)]):
    """Get a specific item."""
    return service.get_item(item_id)


@router.post("", response_model=list[ItemResponse])
def save_items(
    items: list[ItemInput],
    service: Annotated[ItemService, Depends(get_item_service)],
):
    """Create new items and update the ones that carry an id."""
    return service.save_items(items)
