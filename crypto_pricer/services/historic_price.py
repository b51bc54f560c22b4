"""Daily snapshot of every held symbol's USD price into the historic value store."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from .. import config as cfg
from ..core.errors import ConfigurationError
from ..providers.base import price_for
from ..runtime.scheduler import INTERVAL_DAILY, Scheduler, SchedulerConfig
from .models import HistoricValue, HistoricValueRepository, PriceFetcher

logger = logging.getLogger(__name__)


@dataclass
class HistoricPriceConfig:
    fetcher: Optional[PriceFetcher]
    repo: Optional[HistoricValueRepository]
    cancel_event: Optional[threading.Event]
    interval: float = INTERVAL_DAILY
    target_hour: Optional[int] = None

    def validate(self) -> None:
        if self.cancel_event is None:
            raise ConfigurationError("historic price: cancel_event cannot be None")
        if self.fetcher is None:
            raise ConfigurationError("historic price: price fetcher cannot be None")
        if self.repo is None:
            raise ConfigurationError("historic price: repo cannot be None")


class HistoricPriceService:
    def __init__(
        self,
        config: HistoricPriceConfig,
        *,
        utc_now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        config.validate()
        self._config = config
        self._utc_now = utc_now
        self._scheduler = Scheduler(
            SchedulerConfig(
                interval=config.interval,
                handler=self.tick,
                cancel_event=config.cancel_event,
                target_hour=config.target_hour,
                name="historic-price",
            )
        )

    def start(self) -> None:
        self._scheduler.start()

    def stop(self) -> None:
        self._scheduler.stop()

    def tick(self) -> int:
        """
        Store one price per held symbol, all stamped with the same time.

        Returns the number of rows inserted. A failed batch fetch raises; a
        failed insert is logged and the remaining symbols are still stored.
        """
        symbols = self._config.repo.get_unique_symbols()
        if not symbols:
            return 0

        prices = [price_for(s) for s in symbols]
        self._config.fetcher.fetch_many(*prices)

        now = self._utc_now()
        inserted = 0
        for p in prices:
            value = HistoricValue(symbol=p.asset.symbol, value=p.value, timestamp=now)
            try:
                self._config.repo.insert(value)
            except Exception:
                logger.exception("historic price: failed to store %s", p.asset.symbol)
                continue
            inserted += 1

        logger.info("historic price: stored %d of %d symbols", inserted, len(prices))
        return inserted

    @property
    def config(self) -> HistoricPriceConfig:
        return self._config


def create_historic_price_service(
    fetcher: PriceFetcher,
    repo: HistoricValueRepository,
    cancel_event: threading.Event,
    *,
    utc_now: Optional[Callable[[], datetime]] = None,
) -> HistoricPriceService:
    """HistoricPriceService with interval and target hour from config (historic.*)."""
    service_config = HistoricPriceConfig(
        fetcher=fetcher,
        repo=repo,
        cancel_event=cancel_event,
        interval=cfg.historic_interval_seconds(),
        target_hour=cfg.historic_target_hour(),
    )
    if utc_now is None:
        return HistoricPriceService(service_config)
    return HistoricPriceService(service_config, utc_now=utc_now)
