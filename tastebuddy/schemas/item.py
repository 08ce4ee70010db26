"""Item schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ItemInput(BaseModel):
    """Item as submitted by a client, either new (no id) or already known."""

    id: int | None = None
    name: str = Field("", max_length=255)
    type: str | None = Field(None, max_length=50)
    img_url: str | None = Field(None, max_length=1000)


class ItemResponse(BaseModel):
    """Item response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    type: str | None = None
    img_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
