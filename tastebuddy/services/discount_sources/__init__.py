from .base import DiscountSource, HttpDiscountSource
from .edeka import EdekaSource
from .registry import DiscountSourceRegistry, build_default_registry
from .rewe import ReweSource

__all__ = [
    "DiscountSource",
    "DiscountSourceRegistry",
    "EdekaSource",
    "HttpDiscountSource",
    "ReweSource",
    "build_default_registry",
]
