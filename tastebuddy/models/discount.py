"""Discount model."""

from sqlalchemy import JSON, Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from tastebuddy.database import Base
from tastebuddy.models.mixins import TimestampMixin


class Discount(Base, TimestampMixin):
    """A promotion offered by one market.

    (market_id, title) identifies the same promotion across ingestions.
    """

    __tablename__ = "discounts"
    __table_args__ = (UniqueConstraint("market_id", "title", name="uq_discounts_market_title"),)

    id = Column(Integer, primary_key=True, index=True)
    market_id = Column(Integer, ForeignKey("markets.id"), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    price = Column(String(50), nullable=True)  # as delivered by the chain, e.g. "1,99 €"
    img_url = Column(String(1000), nullable=True)
    valid_until = Column(Integer, nullable=True)  # unix timestamp
    market_name = Column(String(255), nullable=True)
    distributor = Column(String(50), nullable=True)
    tags = Column(JSON, nullable=True)

    # Relationships
    market = relationship("Market")
