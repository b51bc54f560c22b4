"""
Seed a first historic value for newly created assets.

Listens on the asset-created topic. An asset that already has history is left
alone, so replayed events are harmless.
"""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from .. import config as cfg
from ..core.errors import ConfigurationError
from ..providers.base import Asset, price_for
from ..runtime.pubsub import PubSub, PubSubConfig, new_queue
from .models import (
    ASSET_CREATED_TOPIC,
    AssetCreatedEvent,
    AssetHistoricRepository,
    HistoricValue,
    PriceFetcher,
)

logger = logging.getLogger(__name__)


@dataclass
class AssetHistoricConfig:
    fetcher: Optional[PriceFetcher]
    repo: Optional[AssetHistoricRepository]
    queue: Optional["queue.Queue[bytes]"]
    cancel_event: Optional[threading.Event]
    topic: str = ASSET_CREATED_TOPIC

    def validate(self) -> None:
        if self.cancel_event is None:
            raise ConfigurationError("asset historic: cancel_event cannot be None")
        if self.fetcher is None:
            raise ConfigurationError("asset historic: price fetcher cannot be None")
        if self.repo is None:
            raise ConfigurationError("asset historic: repo cannot be None")
        if self.queue is None:
            raise ConfigurationError("asset historic: queue cannot be None")


class AssetHistoricService:
    def __init__(
        self,
        config: AssetHistoricConfig,
        *,
        utc_now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        config.validate()
        self._config = config
        self._utc_now = utc_now
        self._pubsub = PubSub(
            PubSubConfig(
                topic=config.topic,
                queue=config.queue,
                cancel_event=config.cancel_event,
                handler=self.handle_asset_created,
            )
        )

    def start(self) -> None:
        self._pubsub.subscribe()

    @property
    def config(self) -> AssetHistoricConfig:
        return self._config

    def publisher(self) -> PubSub:
        """Publish handle for producers of asset-created events."""
        return self._pubsub

    def publish_asset_created(self, asset: Asset, asset_id: Optional[int] = None) -> None:
        self._pubsub.publish(AssetCreatedEvent.from_asset(asset, asset_id).to_json())

    def handle_asset_created(self, data: bytes) -> bool:
        """
        Insert one historic value for the asset unless it already has history.

        Returns True if a value was stored. Undecodable payloads raise DecodeError.
        """
        event = AssetCreatedEvent.from_json(data)

        history = self._config.repo.select_all_by_symbol(event.symbol)
        if history:
            logger.debug("asset historic: %s already has %d values", event.symbol, len(history))
            return False

        price = price_for(event.symbol, event.name)
        try:
            self._config.fetcher.fetch_many(price)
        except Exception:
            logger.exception("asset historic: failed to fetch price for %s", event.symbol)
            return False

        self._config.repo.insert(
            HistoricValue(symbol=event.symbol, value=price.value, timestamp=self._utc_now())
        )
        logger.info("asset historic: seeded %s at %s", event.symbol, price.value)
        return True


def create_asset_historic_service(
    fetcher: PriceFetcher,
    repo: AssetHistoricRepository,
    cancel_event: threading.Event,
) -> AssetHistoricService:
    """AssetHistoricService on a fresh asset-created queue sized by pubsub.queue_size."""
    return AssetHistoricService(
        AssetHistoricConfig(
            fetcher=fetcher,
            repo=repo,
            queue=new_queue(cfg.pubsub_queue_size()),
            cancel_event=cancel_event,
        )
    )
