"""
Records and collaborator protocols for the background services.

Storage is external: the services only talk to repositories through the
protocols below, and repository errors propagate unchanged.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Protocol, runtime_checkable

from ..core.errors import DecodeError
from ..providers.base import Asset, Price

__all__ = [
    "Asset",
    "AssetCreatedEvent",
    "AssetHistoricRepository",
    "AssetRepository",
    "HistoricValue",
    "HistoricValueRepository",
    "PriceFetcher",
    "Publisher",
    "SourcePriceFetcher",
]

ASSET_CREATED_TOPIC = "asset-created"
PRICES_TOPIC = "prices"


@dataclass(frozen=True)
class HistoricValue:
    """One stored price observation. Append-only."""

    symbol: str
    value: float
    timestamp: datetime


@dataclass(frozen=True)
class AssetCreatedEvent:
    """Payload of the asset-created stream: JSON {id, symbol, name}."""

    symbol: str
    name: str = ""
    id: Optional[int] = None

    @classmethod
    def from_asset(cls, asset: Asset, asset_id: Optional[int] = None) -> AssetCreatedEvent:
        return cls(symbol=asset.symbol, name=asset.name, id=asset_id)

    def to_json(self) -> bytes:
        return json.dumps({"id": self.id, "symbol": self.symbol, "name": self.name}).encode("utf-8")

    @classmethod
    def from_json(cls, data: bytes) -> AssetCreatedEvent:
        try:
            raw = json.loads(data)
        except (TypeError, ValueError) as exc:
            raise DecodeError("asset-created", f"invalid event payload: {exc}") from exc
        if not isinstance(raw, dict) or not raw.get("symbol"):
            raise DecodeError("asset-created", "event payload missing symbol")
        return cls(symbol=str(raw["symbol"]), name=str(raw.get("name") or ""), id=raw.get("id"))


@runtime_checkable
class AssetRepository(Protocol):
    def get_all_assets(self) -> List[Asset]: ...


@runtime_checkable
class HistoricValueRepository(Protocol):
    def get_unique_symbols(self) -> List[str]: ...

    def insert(self, value: HistoricValue) -> None: ...


@runtime_checkable
class AssetHistoricRepository(Protocol):
    def select_all_by_symbol(self, symbol: str) -> List[HistoricValue]: ...

    def insert(self, value: HistoricValue) -> None: ...


class PriceFetcher(Protocol):
    def fetch_many(self, *prices: Price) -> None: ...


class SourcePriceFetcher(PriceFetcher, Protocol):
    """Fetcher that can also route one price to a named provider."""

    def fetch_by_source(self, source: str, price: Price) -> None: ...


class Publisher(Protocol):
    def publish(self, payload: bytes) -> None: ...
