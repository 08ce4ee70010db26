"""Abstract base class for all discount sources.

A source knows how to retrieve the current promotions of one market of its
retail chain. Subclasses implement ``fetch()``; any exception it raises is
treated by the aggregator as that market being unavailable.
"""

import abc
import logging
from typing import Any

import httpx

from tastebuddy.models.market import Market
from tastebuddy.schemas.discount import RawDiscount

logger = logging.getLogger(__name__)


class DiscountSource(abc.ABC):
    """Capability to fetch raw discounts for a market."""

    #: Distributor tag this source handles, e.g. "edeka"
    distributor: str = ""

    @abc.abstractmethod
    async def fetch(self, market: Market) -> list[RawDiscount]:
        """Fetch the current discounts of a market."""


class HttpDiscountSource(DiscountSource):
    """Discount source backed by a chain's JSON API."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        # Injected in tests to answer requests without network access
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def _get_json(self, params: dict[str, Any]) -> Any:
        async with self._client() as client:
            response = await client.get(self.base_url, params=params)
            response.raise_for_status()
            return response.json()

    async def fetch(self, market: Market) -> list[RawDiscount]:
        """Fetch and parse the discounts of a market."""
        payload = await self._get_json(self.request_params(market))
        discounts = self.parse(payload)
        logger.info(
            f"[{self.distributor}] {len(discounts)} discounts for market "
            f"{market.external_id} ({market.city})"
        )
        return discounts

    @abc.abstractmethod
    def request_params(self, market: Market) -> dict[str, Any]:
        """Query parameters selecting the market at the chain's API."""

    @abc.abstractmethod
    def parse(self, payload: Any) -> list[RawDiscount]:
        """Map the chain's response onto raw discounts."""
