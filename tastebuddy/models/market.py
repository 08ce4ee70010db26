"""Market model."""

from sqlalchemy import Column, Integer, String

from tastebuddy.database import Base
from tastebuddy.models.mixins import TimestampMixin


class Market(Base, TimestampMixin):
    """A physical store of a retail chain.

    Reference data owned by the chains; rows are upserted by external_id.
    """

    __tablename__ = "markets"

    id = Column(Integer, primary_key=True, index=True)
    external_id = Column(String(100), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    city = Column(String(255), nullable=False, index=True)
    distributor = Column(String(50), nullable=False, index=True)  # "edeka", "rewe", ...
    street = Column(String(255), nullable=True)
    zip_code = Column(String(20), nullable=True)
