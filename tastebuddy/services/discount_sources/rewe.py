"""REWE offers API."""

from typing import Any

from tastebuddy.models.market import Market
from tastebuddy.schemas.discount import RawDiscount
from tastebuddy.services.discount_sources.base import HttpDiscountSource


class ReweSource(HttpDiscountSource):
    """Current offers of a REWE market, grouped by category."""

    distributor = "rewe"

    def request_params(self, market: Market) -> dict[str, Any]:
        return {"marketCode": market.external_id}

    def parse(self, payload: Any) -> list[RawDiscount]:
        # untilDate is shared by all offers of the response, in milliseconds
        until = payload.get("untilDate")
        valid_until = int(until) // 1000 if until else None

        discounts = []
        for category in payload.get("categories") or []:
            category_title = category.get("title")
            for offer in category.get("offers") or []:
                title = (offer.get("title") or "").strip()
                if not title:
                    continue
                images = offer.get("images") or []
                discounts.append(
                    RawDiscount(
                        title=title,
                        price=(offer.get("priceData") or {}).get("price"),
                        img_url=images[0] if images else None,
                        valid_until=valid_until,
                        tags=[category_title] if category_title else [],
                    )
                )
        return discounts
