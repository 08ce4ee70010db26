"""Market and discount schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

# --- Market ---


class MarketCreate(BaseModel):
    """Create or update a market, keyed by the chain's market id."""

    external_id: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., max_length=255)
    city: str = Field(..., min_length=1, max_length=255)
    distributor: str = Field(..., max_length=50)
    street: str | None = Field(None, max_length=255)
    zip_code: str | None = Field(None, max_length=20)


class MarketResponse(BaseModel):
    """Market response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    external_id: str
    name: str
    city: str
    distributor: str
    street: str | None
    zip_code: str | None


# --- Discount ---


class RawDiscount(BaseModel):
    """A discount as returned by a source, before it is tied to a stored market."""

    title: str
    price: str | None = None
    img_url: str | None = None
    valid_until: int | None = None
    tags: list[str] = []


class DiscountIn(RawDiscount):
    """A fetched discount attributed to the market it came from."""

    market_id: int
    market_name: str | None = None
    distributor: str | None = None


class DiscountResponse(BaseModel):
    """Stored discount."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    price: str | None
    img_url: str | None
    valid_until: int | None
    market_id: int
    market_name: str | None
    distributor: str | None
    updated_at: datetime | None = None
