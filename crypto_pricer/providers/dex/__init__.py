"""DEX and on-chain price providers (pool / contract backed)."""
from __future__ import annotations

from .defillama import DefiLlamaPriceProvider
from .geckoterminal import GeckoTerminalPriceProvider

__all__ = ["DefiLlamaPriceProvider", "GeckoTerminalPriceProvider"]
