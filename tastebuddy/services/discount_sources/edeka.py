"""EDEKA offers API."""

from typing import Any

from tastebuddy.models.market import Market
from tastebuddy.schemas.discount import RawDiscount
from tastebuddy.services.discount_sources.base import HttpDiscountSource


class EdekaSource(HttpDiscountSource):
    """Weekly offers of an EDEKA market.

    The API answers ``{"docs": [{"titel", "preis", "bild_app", "gueltig_bis"}]}``
    where ``gueltig_bis`` is a unix timestamp in milliseconds.
    """

    distributor = "edeka"

    def request_params(self, market: Market) -> dict[str, Any]:
        return {"marketId": market.external_id}

    def parse(self, payload: Any) -> list[RawDiscount]:
        discounts = []
        for doc in payload.get("docs") or []:
            title = (doc.get("titel") or "").strip()
            if not title:
                continue
            valid_until = doc.get("gueltig_bis")
            discounts.append(
                RawDiscount(
                    title=title,
                    price=_format_price(doc.get("preis")),
                    img_url=doc.get("bild_app") or None,
                    valid_until=int(valid_until) // 1000 if valid_until else None,
                )
            )
        return discounts


def _format_price(price: Any) -> str | None:
    if price is None or price == "":
        return None
    if isinstance(price, int | float):
        return f"{price:.2f} €".replace(".", ",")
    return str(price)
