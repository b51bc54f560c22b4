"""CEX (centralized exchange) spot price providers."""
from __future__ import annotations

from .binance import BinancePriceProvider
from .cryptocompare import CryptoComparePriceProvider
from .kraken import KrakenPriceProvider

__all__ = ["BinancePriceProvider", "CryptoComparePriceProvider", "KrakenPriceProvider"]
