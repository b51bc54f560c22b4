"""
Default provider registry configuration.

Registers built-in providers and builds the aggregating price service from
config.yaml settings. To add a new provider, register it here and add it to
the priority list.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from .. import config as cfg
from ..core.errors import ConfigurationError
from .cex.binance import BinancePriceProvider
from .cex.cryptocompare import CryptoComparePriceProvider
from .cex.kraken import KrakenPriceProvider
from .chain import PriceService
from .dex.defillama import DefiLlamaPriceProvider
from .dex.geckoterminal import GeckoTerminalPriceProvider
from .registry import ProviderRegistry

logger = logging.getLogger(__name__)

# Default provider priority (config.yaml can override these)
DEFAULT_PRIORITY = ["binance", "kraken", "cryptocompare", "geckoterminal", "defillama"]


def create_default_registry(timeout_s: Optional[float] = None) -> ProviderRegistry:
    """Create a registry with all built-in providers, configured from config.yaml/env."""
    timeout = timeout_s if timeout_s is not None else cfg.http_timeout_seconds()
    registry = ProviderRegistry()
    registry.register("binance", lambda: BinancePriceProvider(timeout_s=timeout))
    registry.register("kraken", lambda: KrakenPriceProvider(timeout_s=timeout))
    registry.register(
        "cryptocompare",
        lambda: CryptoComparePriceProvider(api_key=cfg.cryptocompare_api_key(), timeout_s=timeout),
    )
    registry.register(
        "geckoterminal",
        lambda: GeckoTerminalPriceProvider(network=cfg.geckoterminal_network(), timeout_s=timeout),
    )
    registry.register(
        "defillama",
        lambda: DefiLlamaPriceProvider(network=cfg.defillama_network(), timeout_s=timeout),
    )
    return registry


def load_provider_priority() -> List[str]:
    """Priority list from config.yaml (`providers.priority`), else DEFAULT_PRIORITY."""
    return cfg.provider_priority() or list(DEFAULT_PRIORITY)


def create_price_service(
    registry: Optional[ProviderRegistry] = None,
    priority: Optional[List[str]] = None,
    cache_ttl_seconds: Optional[float] = None,
) -> PriceService:
    """Build the aggregating price service. Unknown provider names are a ConfigurationError."""
    reg = registry or create_default_registry()
    order = priority or load_provider_priority()
    unknown = [name for name in order if name not in reg]
    if unknown:
        raise ConfigurationError(
            f"unknown price providers in priority list: {unknown}, available: {reg.names}"
        )
    ttl = cache_ttl_seconds if cache_ttl_seconds is not None else cfg.cache_ttl_seconds()
    providers = reg.build_chain(order)
    logger.info("price service providers: %s (cache ttl %ss)", ", ".join(order), ttl)
    return PriceService(providers, cache_ttl_seconds=ttl)
