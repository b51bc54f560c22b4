"""
Provider registry: central catalog of available price providers.

Providers are registered by name in insertion order. A config priority list
selects which of them are tried, and in what order. Names outside the registry
are rejected instead of silently skipped.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Union

from ..core.errors import UnknownProviderError
from .base import PriceProvider

logger = logging.getLogger(__name__)

ProviderFactory = Union[Callable[[], PriceProvider], PriceProvider]


class ProviderRegistry:
    """
    Ordered name -> provider mapping. Factories are instantiated lazily, once.

    Usage:
        registry = ProviderRegistry()
        registry.register("binance", BinancePriceProvider)
        registry.register("kraken", KrakenPriceProvider())

        providers = registry.build_chain(["kraken", "binance"])
    """

    def __init__(self) -> None:
        self._factories: Dict[str, ProviderFactory] = {}
        self._instances: Dict[str, PriceProvider] = {}

    def register(self, name: str, factory: ProviderFactory) -> None:
        """Register a provider class, factory callable, or ready instance by name."""
        self._factories[name] = factory
        self._instances.pop(name, None)
        logger.debug("Registered price provider: %s", name)

    def get(self, name: str) -> PriceProvider:
        """Get or instantiate a provider by name."""
        if name not in self._instances:
            factory = self._factories.get(name)
            if factory is None:
                raise UnknownProviderError(
                    f"unknown price provider '{name}', available: {self.names}"
                )
            if isinstance(factory, type) or not isinstance(factory, PriceProvider):
                self._instances[name] = factory()
            else:
                self._instances[name] = factory
        return self._instances[name]

    def __contains__(self, name: object) -> bool:
        return name in self._factories

    @property
    def names(self) -> List[str]:
        return list(self._factories)

    def build_chain(self, priority: Optional[List[str]] = None) -> List[PriceProvider]:
        """Ordered providers for a priority list (every registered one if None)."""
        names = list(priority) if priority else self.names
        return [self.get(n) for n in names]
