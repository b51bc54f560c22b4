"""
USD price providers for crypto assets.

Each adapter implements the PriceProvider protocol against one market-data
API. The PriceService chains them in priority order with automatic fallback
and short-lived caching; the registry maps config names to adapters.
"""

from __future__ import annotations

from .base import Asset, Price, PriceProvider, is_stablecoin, price_for
from .chain import PriceService
from .pairs import build_pair_map, resolve_pair_price
from .registry import ProviderRegistry

__all__ = [
    "Asset",
    "Price",
    "PriceProvider",
    "PriceService",
    "ProviderRegistry",
    "build_pair_map",
    "is_stablecoin",
    "price_for",
    "resolve_pair_price",
]
