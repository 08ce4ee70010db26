"""Market reference data."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tastebuddy.exceptions import NotFoundError, PersistenceError
from tastebuddy.models.market import Market
from tastebuddy.schemas.discount import MarketCreate

logger = logging.getLogger(__name__)


class MarketService:
    """Service for market lookups and upserts."""

    def __init__(self, db: Session):
        self.db = db

    def markets_by_city(self, city: str) -> list[Market]:
        """Get all markets located in a city, oldest first."""
        try:
            markets = self.db.query(Market).filter(Market.city == city).order_by(Market.id).all()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not load markets for {city}: {e}") from e
        if not markets:
            raise NotFoundError(f"No markets found for {city}")
        return markets

    def upsert_markets(self, markets: list[MarketCreate]) -> list[Market]:
        """Insert or update markets keyed by their chain's market id."""
        saved = []
        try:
            for data in markets:
                market = (
                    self.db.query(Market).filter(Market.external_id == data.external_id).first()
                )
                if market is None:
                    market = Market(**data.model_dump())
                    self.db.add(market)
                else:
                    for key, value in data.model_dump().items():
                        setattr(market, key, value)
                # Flush so a repeated external_id in the same batch updates in place
                self.db.flush()
                saved.append(market)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Could not save markets: {e}") from e

        for market in saved:
            self.db.refresh(market)
        logger.info(f"Saved {len(saved)} markets")
        return saved
