"""
Aggregating price service: ordered provider fallback with TTL caching.

Providers are tried in priority order. The first one that answers wins; a
failing provider is logged and the next one gets the whole request. Only when
every provider failed does the caller see an error, naming each failure.

Single prices and the catalog are cached for `cache_ttl_seconds` (60 s by
default). Batch fetches always go to the providers.
"""
from __future__ import annotations

import logging
import time
from typing import Callable, Dict, List, Sequence

from ..core.errors import AllProvidersFailedError, ConfigurationError, UnknownProviderError
from ..runtime.cache import TTLCache
from .base import Price, PriceProvider, fill_stablecoin

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL_S = 60.0
AGGREGATOR_SOURCE = "aggregator"
_CATALOG_KEY = "__all__"


class PriceService:
    """
    PriceProvider over an ordered list of providers.

    Cache state belongs to the instance; build one at startup and share it.
    """

    def __init__(
        self,
        providers: Sequence[PriceProvider],
        cache_ttl_seconds: float = DEFAULT_CACHE_TTL_S,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not providers:
            raise ConfigurationError("price service needs at least one provider")
        if cache_ttl_seconds <= 0:
            raise ConfigurationError("price service cache TTL must be positive")
        self._providers: List[PriceProvider] = list(providers)
        self._by_name: Dict[str, PriceProvider] = {p.provider_name: p for p in self._providers}
        self._price_cache: TTLCache[str, Price] = TTLCache(cache_ttl_seconds, clock=clock)
        self._catalog_cache: TTLCache[str, List[Price]] = TTLCache(cache_ttl_seconds, clock=clock)

    @property
    def provider_name(self) -> str:
        return AGGREGATOR_SOURCE

    @property
    def provider_names(self) -> List[str]:
        return [p.provider_name for p in self._providers]

    def fetch(self, price: Price) -> None:
        """Fill one price: stablecoin shortcut, then cache, then providers in order."""
        if fill_stablecoin(price, AGGREGATOR_SOURCE):
            return

        symbol = price.asset.symbol
        cached = self._price_cache.get(symbol)
        if cached is not None:
            logger.debug("price cache hit for %s (%s)", symbol, cached.source)
            price.update_from(cached)
            return

        errors: Dict[str, Exception] = {}
        for provider in self._providers:
            name = provider.provider_name
            try:
                provider.fetch(price)
            except Exception as exc:
                logger.warning("provider %s failed to fetch %s: %s", name, symbol, exc)
                errors[name] = exc
                continue
            self._price_cache.put(symbol, price.copy())
            return

        raise AllProvidersFailedError("fetch price", errors)

    def fetch_many(self, *prices: Price) -> None:
        """
        Fill a batch. Each provider gets the whole batch; partial results are not merged.

        Providers work on copies, so a provider that fails halfway leaves no
        values behind for the next one.
        """
        if not prices:
            return

        errors: Dict[str, Exception] = {}
        for provider in self._providers:
            name = provider.provider_name
            batch = [p.copy() for p in prices]
            try:
                provider.fetch_many(*batch)
            except Exception as exc:
                logger.warning("provider %s failed to fetch %d prices: %s", name, len(prices), exc)
                errors[name] = exc
                continue
            for target, filled in zip(prices, batch):
                target.update_from(filled)
            return

        raise AllProvidersFailedError("fetch prices", errors)

    def fetch_all(self) -> List[Price]:
        """Catalog of every quotable price from the first provider that can list one."""
        cached = self._catalog_cache.get(_CATALOG_KEY)
        if cached is not None:
            logger.debug("catalog cache hit (%d prices)", len(cached))
            return [p.copy() for p in cached]

        errors: Dict[str, Exception] = {}
        for provider in self._providers:
            name = provider.provider_name
            try:
                prices = provider.fetch_all()
            except Exception as exc:
                logger.warning("provider %s failed to fetch catalog: %s", name, exc)
                errors[name] = exc
                continue
            self._catalog_cache.put(_CATALOG_KEY, [p.copy() for p in prices])
            return [p.copy() for p in prices]

        raise AllProvidersFailedError("fetch all prices", errors)

    def fetch_by_source(self, source: str, price: Price) -> None:
        """Fill one price from one named provider. No cache, no failover."""
        provider = self._by_name.get(source)
        if provider is None:
            raise UnknownProviderError(
                f"unknown price provider '{source}', configured: {self.provider_names}"
            )
        provider.fetch(price)

    def invalidate(self) -> None:
        """Drop every cached price and the cached catalog."""
        self._price_cache.clear()
        self._catalog_cache.clear()
