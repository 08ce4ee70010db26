"""Registry mapping distributor tags to discount sources."""

import logging

from tastebuddy.config import Settings, get_settings
from tastebuddy.services.discount_sources.base import DiscountSource
from tastebuddy.services.discount_sources.edeka import EdekaSource
from tastebuddy.services.discount_sources.rewe import ReweSource

logger = logging.getLogger(__name__)


class DiscountSourceRegistry:
    """Resolves a market's distributor tag to the source able to fetch it."""

    def __init__(self, sources: dict[str, DiscountSource] | None = None):
        self._sources: dict[str, DiscountSource] = {}
        for tag, source in (sources or {}).items():
            self.register(tag, source)

    def register(self, distributor: str, source: DiscountSource) -> None:
        """Register (or replace) the source for a distributor tag."""
        self._sources[distributor.lower()] = source

    def resolve(self, distributor: str | None) -> DiscountSource | None:
        """Get the source for a distributor, or None if the chain has no integration."""
        if not distributor:
            return None
        return self._sources.get(distributor.lower())

    @property
    def distributors(self) -> list[str]:
        """Tags with a registered source."""
        return sorted(self._sources)


def build_default_registry(settings: Settings | None = None) -> DiscountSourceRegistry:
    """Registry with every chain integration, configured from settings."""
    settings = settings or get_settings()
    timeout = settings.discount_fetch_timeout_seconds
    return DiscountSourceRegistry(
        {
            EdekaSource.distributor: EdekaSource(settings.edeka_api_url, timeout=timeout),
            ReweSource.distributor: ReweSource(settings.rewe_api_url, timeout=timeout),
        }
    )
