"""Discount aggregation across retail chains, and the deduplicated read path."""

import asyncio
import logging
from collections.abc import Callable

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from tastebuddy.config import Settings, get_settings
from tastebuddy.exceptions import NotFoundError, PersistenceError, SourceUnavailable
from tastebuddy.models.discount import Discount
from tastebuddy.models.market import Market
from tastebuddy.schemas.discount import DiscountIn
from tastebuddy.schemas.jobs import CityRefreshResult
from tastebuddy.services.discount_sources import DiscountSourceRegistry, build_default_registry
from tastebuddy.services.market_service import MarketService

logger = logging.getLogger(__name__)


def dedupe_by_title(discounts: list[Discount]) -> list[Discount]:
    """Keep the first discount of every title, preserving order."""
    seen: set[str] = set()
    unique = []
    for discount in discounts:
        if discount.title in seen:
            continue
        seen.add(discount.title)
        unique.append(discount)
    return unique


class DiscountService:
    """Service for fetching, storing and reading discounts."""

    def __init__(
        self,
        db: Session,
        registry: DiscountSourceRegistry | None = None,
        settings: Settings | None = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.registry = registry or build_default_registry(self.settings)
        self.markets = MarketService(db)

    # --- Aggregation ---

    async def fetch_market(self, market: Market) -> list[DiscountIn]:
        """Fetch the discounts of one market.

        Markets whose chain has no source yield nothing. A failing or slow
        source raises SourceUnavailable.
        """
        source = self.registry.resolve(market.distributor)
        if source is None:
            logger.debug(f"No discount source for distributor '{market.distributor}'")
            return []

        timeout = self.settings.discount_fetch_timeout_seconds
        try:
            raw_discounts = await asyncio.wait_for(source.fetch(market), timeout=timeout)
        except TimeoutError as e:
            raise SourceUnavailable(
                f"{market.distributor} timed out after {timeout}s for market {market.id}",
                market_id=market.id,
            ) from e
        except Exception as e:
            raise SourceUnavailable(
                f"{market.distributor} failed for market {market.id}: {e}", market_id=market.id
            ) from e

        return [
            DiscountIn(
                **raw.model_dump(),
                market_id=market.id,
                market_name=market.name,
                distributor=market.distributor,
            )
            for raw in raw_discounts
        ]

    async def _fetch_markets(self, markets: list[Market]) -> tuple[list[DiscountIn], int]:
        """Fetch all markets concurrently. Returns discounts and the number of failed markets."""
        semaphore = asyncio.Semaphore(self.settings.discount_fetch_concurrency)

        async def _bounded_fetch(market: Market) -> list[DiscountIn]:
            async with semaphore:
                return await self.fetch_market(market)

        results = await asyncio.gather(
            *[_bounded_fetch(market) for market in markets],
            return_exceptions=True,
        )

        discounts: list[DiscountIn] = []
        failed = 0
        for market, result in zip(markets, results, strict=True):
            if isinstance(result, SourceUnavailable):
                logger.warning(f"Skipping market {market.id} ({market.name}): {result}")
                failed += 1
            elif isinstance(result, BaseException):
                logger.error(f"Unexpected error for market {market.id}: {result}", exc_info=result)
                failed += 1
            else:
                discounts.extend(result)
        return discounts, failed

    async def aggregate_for_city(self, city: str) -> list[DiscountIn]:
        """Fetch the discounts of every market in a city.

        Raises NotFoundError if the city has no markets. A market whose
        source fails is skipped; the others still contribute.
        """
        markets = self.markets.markets_by_city(city)
        discounts, _ = await self._fetch_markets(markets)
        return discounts

    # --- Persistence ---

    def upsert_discount(self, data: DiscountIn) -> Discount:
        """Insert or replace the discount keyed by (market_id, title)."""
        values = data.model_dump()
        try:
            discount = self._find(data.market_id, data.title)
            if discount is None:
                discount = Discount(**values)
                self.db.add(discount)
                try:
                    self.db.commit()
                    return discount
                except IntegrityError:
                    # Inserted concurrently by another refresh; update that row instead
                    self.db.rollback()
                    discount = self._find(data.market_id, data.title)
                    if discount is None:
                        raise
            for key, value in values.items():
                setattr(discount, key, value)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Could not store discount '{data.title}': {e}") from e
        return discount

    def persist(self, discounts: list[DiscountIn]) -> tuple[int, int]:
        """Upsert every discount. Returns the number written and the number that failed.

        A discount that cannot be stored is logged and skipped; the rest of
        the batch is still written.
        """
        stored = 0
        failed = 0
        for data in discounts:
            try:
                self.upsert_discount(data)
                stored += 1
            except PersistenceError as e:
                logger.error(f"Skipping discount '{data.title}' of market {data.market_id}: {e}")
                failed += 1
        logger.info(f"Stored {stored} discounts, {failed} failed")
        return stored, failed

    def _find(self, market_id: int, title: str) -> Discount | None:
        return (
            self.db.query(Discount)
            .filter(Discount.market_id == market_id, Discount.title == title)
            .first()
        )

    # --- Refresh ---

    async def refresh_city(self, city: str) -> CityRefreshResult:
        """Fetch and store the discounts of a city, reporting what happened.

        Database work runs in a worker thread so other cities refreshed on the
        same event loop keep fetching meanwhile.
        """
        result = CityRefreshResult(city=city)
        logger.info(f"Refreshing discounts for {city}")
        try:
            markets = await asyncio.to_thread(self.markets.markets_by_city, city)
            result.markets = len(markets)
            discounts, result.markets_failed = await self._fetch_markets(markets)
            result.discounts_fetched = len(discounts)
            result.discounts_stored, result.discounts_failed = await asyncio.to_thread(
                self.persist, discounts
            )
        except (NotFoundError, PersistenceError) as e:
            logger.error(f"Refreshing discounts for {city} failed: {e}")
            result.error = str(e)
        logger.info(f"Done refreshing discounts for {city}: {result.model_dump()}")
        return result

    # --- Read path ---

    def by_city(self, city: str) -> list[Discount]:
        """Get the stored discounts of a city, one per title.

        Rows are read in id order, so for a title offered by several markets
        the earliest stored row is returned.
        """
        market_ids = [market.id for market in self.markets.markets_by_city(city)]
        try:
            discounts = (
                self.db.query(Discount)
                .filter(Discount.market_id.in_(market_ids))
                .order_by(Discount.id)
                .all()
            )
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not load discounts for {city}: {e}") from e
        unique = dedupe_by_title(discounts)
        logger.info(f"Return {len(unique)} discounts for {city}")
        return unique

    def all_discounts(self) -> list[Discount]:
        """Get every stored discount."""
        try:
            return self.db.query(Discount).order_by(Discount.id).all()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not load discounts: {e}") from e


async def refresh_cities(
    cities: list[str],
    session_factory: Callable[[], Session],
    registry: DiscountSourceRegistry | None = None,
) -> dict[str, CityRefreshResult]:
    """Refresh several cities concurrently, each with its own session.

    Every city is isolated from the others; the returned mapping holds one
    result per city once all of them have finished.
    """
    registry = registry or build_default_registry()

    async def _refresh(city: str) -> CityRefreshResult:
        db = session_factory()
        try:
            return await DiscountService(db, registry=registry).refresh_city(city)
        finally:
            db.close()

    results = await asyncio.gather(*[_refresh(city) for city in cities], return_exceptions=True)

    by_city = {}
    for city, result in zip(cities, results, strict=True):
        if isinstance(result, BaseException):
            logger.error(f"Refreshing {city} crashed: {result}", exc_info=result)
            result = CityRefreshResult(city=city, error=str(result))
        by_city[city] = result
    return by_city
