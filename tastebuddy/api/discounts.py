"""Discount and market API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from tastebuddy.api.dependencies import get_discount_service, get_market_service
from tastebuddy.schemas.discount import DiscountResponse, MarketCreate, MarketResponse
from tastebuddy.services.discount_service import DiscountService
from tastebuddy.services.market_service import MarketService

router = APIRouter(prefix="/api/v1", tags=["discounts"])


@router.get("/discounts", response_model=list[DiscountResponse])
def list_discounts(service: Annotated[DiscountService, Depends(get_discount_service)]):
    """List every stored discount."""
    return service.all_discounts()


@router.get("/discounts/city/{city}", response_model=list[DiscountResponse])
def get_discounts_by_city(
    city: str,
    service: Annotated[DiscountService, Depends(get_discount_service)],
):
    """Get the discounts of a city, one per promotion title."""
    return service.by_city(city)


@router.get("/markets/city/{city}", response_model=list[MarketResponse])
def get_markets_by_city(
    city: str,
    service: Annotated[MarketService, Depends(get_market_service)],
):
    """Get the markets of a city."""
    return service.markets_by_city(city)


@router.post("/markets", response_model=list[MarketResponse])
def save_markets(
    markets: list[MarketCreate],
    service: Annotated[MarketService, Depends(get_market_service)],
):
    """Insert or update markets keyed by their external id."""
    return service.upsert_markets(markets)
