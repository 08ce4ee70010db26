"""Recipe model."""

from sqlalchemy import JSON, Column, Integer, String, Text

from tastebuddy.database import Base
from tastebuddy.models.mixins import SoftDeleteMixin, TimestampMixin


class Recipe(Base, TimestampMixin, SoftDeleteMixin):
    """Recipe model for storing recipe definitions."""

    __tablename__ = "recipes"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    author = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)

    # Steps: [{"description": str, "duration": int, "img_url": str,
    #          "items": [{"item_id": 1, "amount": 2, "unit": "g"}]}, ...]
    # Only item references are stored, never embedded item content.
    steps = Column(JSON, nullable=False, default=list)

    # Props
    url = Column(String(1000), nullable=True)
    img_url = Column(String(1000), nullable=True)
    duration = Column(Integer, nullable=True)  # minutes
    price = Column(Integer, nullable=True)
    tags = Column(JSON, nullable=True)
    likes = Column(Integer, default=0)
