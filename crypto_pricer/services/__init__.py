"""Background services: live price publishing, historic snapshots, asset seeding."""

from __future__ import annotations

from .asset_historic import AssetHistoricConfig, AssetHistoricService, create_asset_historic_service
from .historic_price import HistoricPriceConfig, HistoricPriceService, create_historic_price_service
from .live_price import LivePriceConfig, LivePriceService
from .models import AssetCreatedEvent, HistoricValue

__all__ = [
    "AssetCreatedEvent",
    "AssetHistoricConfig",
    "AssetHistoricService",
    "HistoricPriceConfig",
    "HistoricPriceService",
    "HistoricValue",
    "LivePriceConfig",
    "LivePriceService",
    "create_asset_historic_service",
    "create_historic_price_service",
]
