"""
Binance spot price provider.

Uses the public Binance API (no authentication required):
  GET https://api.binance.com/api/v3/ticker/price?symbol={SYMBOL}USD
  GET https://api.binance.com/api/v3/ticker/price            (full ticker snapshot)

Batch lookups download the full snapshot once and resolve every SYMBOL+USD
pair through anchor triangulation, so assets only quoted against BTC, ETH,
etc. still get a USD price.
"""
from __future__ import annotations

from typing import Any, Dict, List

from ...core.errors import DecodeError, PairNotFoundError, QuoteNotFoundError
from ..base import HTTP_TIMEOUT_S, Asset, Price, fill_stablecoin, http_get_json, parse_price
from ..pairs import anchor_index, build_pair_map, resolve_pair_price

BINANCE_BASE_URL = "https://api.binance.com/api/v3"
QUOTE_SUFFIX = "USD"


def to_binance_pair(symbol: str) -> str:
    return symbol.strip().upper() + QUOTE_SUFFIX


class BinancePriceProvider:
    """Fetch USD prices from the Binance ticker API."""

    def __init__(self, base_url: str = BINANCE_BASE_URL, timeout_s: float = HTTP_TIMEOUT_S) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s

    @property
    def provider_name(self) -> str:
        return "binance"

    def fetch(self, price: Price) -> None:
        if fill_stablecoin(price, self.provider_name):
            return
        pair = to_binance_pair(price.asset.symbol)
        data = http_get_json(
            self.provider_name,
            f"{self._base_url}/ticker/price",
            params={"symbol": pair},
            timeout=self._timeout_s,
            not_found_statuses=(400,),
        )
        if data is None:
            raise QuoteNotFoundError(self.provider_name, f"invalid trading pair: {pair}")
        if not isinstance(data, dict) or "price" not in data:
            raise DecodeError(self.provider_name, f"ticker response missing price for {pair}")

        price.value = parse_price(self.provider_name, data["price"])
        price.source = self.provider_name

    def fetch_many(self, *prices: Price) -> None:
        pending = [p for p in prices if not fill_stablecoin(p, self.provider_name)]
        if not pending:
            return

        price_map = build_pair_map(self._ticker_snapshot())
        index = anchor_index(price_map)
        for price in pending:
            pair = to_binance_pair(price.asset.symbol)
            try:
                price.value = resolve_pair_price(pair, price_map, index)
            except PairNotFoundError as exc:
                raise QuoteNotFoundError(
                    self.provider_name, f"failed to get price for pair {pair}: {exc}"
                ) from exc
            price.source = self.provider_name

    def fetch_all(self) -> List[Price]:
        out: List[Price] = []
        for row in self._ticker_snapshot():
            symbol = str(row.get("symbol") or "")
            if not symbol.endswith(QUOTE_SUFFIX) or len(symbol) <= len(QUOTE_SUFFIX):
                continue
            try:
                value = float(row.get("price"))
            except (TypeError, ValueError):
                continue
            base = symbol[: -len(QUOTE_SUFFIX)]
            out.append(
                Price(asset=Asset(symbol=base, name=base), value=value, source=self.provider_name)
            )
        return out

    def _ticker_snapshot(self) -> List[Dict[str, Any]]:
        data = http_get_json(
            self.provider_name,
            f"{self._base_url}/ticker/price",
            timeout=self._timeout_s,
        )
        if not isinstance(data, list):
            raise DecodeError(
                self.provider_name, f"expected ticker list, got {type(data).__name__}"
            )
        return [row for row in data if isinstance(row, dict)]
