"""
Live price service: keep a cache of current USD prices for every held asset
and publish the full symbol -> price map on every tick.

The tracked symbol set is resynced from the asset repository when the cache
is empty or the last resync is older than `resync_interval`. Assets pinned to
a price source are fetched one by one from that provider; the rest go through
one batch fetch.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from ..core.errors import ConfigurationError
from ..providers.base import Asset, Price
from ..runtime.cache import LiveCache
from ..runtime.scheduler import INTERVAL_MINUTE, Scheduler, SchedulerConfig
from .models import AssetRepository, Publisher, SourcePriceFetcher

logger = logging.getLogger(__name__)

DEFAULT_RESYNC_INTERVAL_S = 60 * 60.0


@dataclass
class LivePriceConfig:
    cache: Optional[LiveCache]
    fetcher: Optional[SourcePriceFetcher]
    publisher: Optional[Publisher]
    repo: Optional[AssetRepository]
    cancel_event: Optional[threading.Event]
    interval: float = INTERVAL_MINUTE
    resync_interval: float = DEFAULT_RESYNC_INTERVAL_S

    def validate(self) -> None:
        if self.cancel_event is None:
            raise ConfigurationError("live price: cancel_event cannot be None")
        if self.cache is None:
            raise ConfigurationError("live price: cache cannot be None")
        if self.fetcher is None:
            raise ConfigurationError("live price: price fetcher cannot be None")
        if self.publisher is None:
            raise ConfigurationError("live price: publisher cannot be None")
        if self.repo is None:
            raise ConfigurationError("live price: repo cannot be None")
        if self.resync_interval <= 0:
            raise ConfigurationError("live price: resync_interval must be positive")


class LivePriceService:
    def __init__(self, config: LivePriceConfig, *, clock: Callable[[], float] = time.monotonic) -> None:
        config.validate()
        self._config = config
        self._cache: LiveCache = config.cache
        self._clock = clock
        self._last_sync: Optional[float] = None
        self._assets: Dict[str, Asset] = {}
        self._assets_lock = threading.Lock()
        self._scheduler = Scheduler(
            SchedulerConfig(
                interval=config.interval,
                handler=self.tick,
                cancel_event=config.cancel_event,
                name="live-price",
            )
        )

    def start(self) -> None:
        """Run one best-effort tick right away, then tick on the interval."""
        try:
            self.tick()
        except Exception:
            logger.exception("live price: initial tick failed")
        self._scheduler.start()

    def stop(self) -> None:
        self._scheduler.stop()

    def force_sync(self) -> Dict[str, float]:
        """Resync holdings and publish now. Errors propagate to the caller."""
        self.sync()
        return self.fetch_and_publish()

    def tick(self) -> Dict[str, float]:
        if len(self._cache) == 0 or self._resync_due():
            try:
                self.sync()
            except Exception:
                logger.exception("live price: asset resync failed, keeping %d symbols", len(self._cache))
        return self.fetch_and_publish()

    def _resync_due(self) -> bool:
        if self._last_sync is None:
            return True
        return (self._clock() - self._last_sync) >= self._config.resync_interval

    def sync(self) -> None:
        """Track every held asset: new symbols start at 0.0, dropped ones are removed."""
        assets = self._config.repo.get_all_assets()

        held: Dict[str, Asset] = {}
        for asset in assets:
            held[asset.symbol] = asset
            if asset.symbol not in self._cache:
                self._cache.set(asset.symbol, 0.0)

        for symbol in self._cache.keys():
            if symbol not in held:
                self._cache.delete(symbol)

        with self._assets_lock:
            self._assets = held
        self._last_sync = self._clock()
        logger.info("live price: synced %d symbols from asset repository", len(held))

    def fetch_and_publish(self) -> Dict[str, float]:
        """
        Fetch every tracked symbol, update the cache and publish {symbol: price} as JSON.

        A failed batch fetch aborts the tick without publishing.
        """
        symbols = self._cache.keys()
        if not symbols:
            return {}

        with self._assets_lock:
            pinned = {
                s: self._assets[s]
                for s in symbols
                if s in self._assets and self._assets[s].price_source
            }
            names = {s: a.name for s, a in self._assets.items()}

        regular = [Price(asset=Asset(symbol=s, name=names.get(s, ""))) for s in symbols if s not in pinned]
        if regular:
            self._config.fetcher.fetch_many(*regular)

        price_map: Dict[str, float] = {}
        for p in regular:
            self._cache.set(p.asset.symbol, p.value)
            price_map[p.asset.symbol] = p.value

        for symbol, asset in pinned.items():
            price = Price(asset=Asset(symbol=symbol, name=asset.name, price_source=asset.price_source))
            try:
                self._config.fetcher.fetch_by_source(asset.price_source, price)
            except Exception as exc:
                logger.warning(
                    "live price: %s via %s failed: %s", symbol, asset.price_source, exc
                )
                continue
            self._cache.set(symbol, price.value)
            price_map[symbol] = price.value

        self._config.publisher.publish(json.dumps(price_map).encode("utf-8"))
        logger.debug("live price: published %d prices (%d pinned)", len(price_map), len(pinned))
        return price_map

    def snapshot(self) -> Dict[str, float]:
        """Current symbol -> price map."""
        return dict(self._cache.items())

    def custom_source_assets(self) -> List[Tuple[Asset, float]]:
        """Assets pinned to a price source, with their last cached price."""
        with self._assets_lock:
            pinned = [a for a in self._assets.values() if a.price_source]
        return [(a, self._cache.get(a.symbol, 0.0)) for a in pinned]
