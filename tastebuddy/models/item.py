"""Item model."""

from sqlalchemy import Column, Integer, String

from tastebuddy.database import Base
from tastebuddy.models.mixins import TimestampMixin


class Item(Base, TimestampMixin):
    """An ingredient or tool that recipe steps reference by id.

    Items are never deleted. Several rows may share a name until the
    canonicalization pass picks one of them and rewrites recipe references.
    """

    __tablename__ = "items"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    type = Column(String(50), nullable=True)  # "ingredient", "tool"
    img_url = Column(String(1000), nullable=True)
