"""
GeckoTerminal DEX price provider.

Uses the public GeckoTerminal API (no key required):
  GET /networks/{network}/pools/{address}     (contract address lookup)
  GET /search/pools?query=...&network=...     (symbol/name search)
  GET /networks/{network}/trending_pools      (catalog)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ...core.errors import DecodeError, QuoteNotFoundError
from ..base import HTTP_TIMEOUT_S, Asset, Price, fill_stablecoin, http_get_json, parse_price, safe_get

logger = logging.getLogger(__name__)

GECKOTERMINAL_BASE_URL = "https://api.geckoterminal.com/api/v2"
DEFAULT_NETWORK = "eth"


def is_contract_address(value: str) -> bool:
    value = (value or "").strip()
    return len(value) == 42 and value.lower().startswith("0x")


def extract_symbol(pool_name: str) -> str:
    """'PEPE / WETH 0.3%' -> 'PEPE'."""
    head = (pool_name or "").split("/", 1)[0].strip()
    return head.split(" ", 1)[0].upper() if head else ""


class GeckoTerminalPriceProvider:
    """Fetch USD prices of DEX pool base tokens from GeckoTerminal."""

    def __init__(
        self,
        network: str = DEFAULT_NETWORK,
        base_url: str = GECKOTERMINAL_BASE_URL,
        timeout_s: float = HTTP_TIMEOUT_S,
    ) -> None:
        self._network = network
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s

    @property
    def provider_name(self) -> str:
        return "geckoterminal"

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return http_get_json(
            self.provider_name,
            f"{self._base_url}/{path}",
            params=params,
            headers={"Accept": "application/json"},
            timeout=self._timeout_s,
        )

    def fetch(self, price: Price) -> None:
        if fill_stablecoin(price, self.provider_name):
            return

        address = next(
            (v for v in (price.asset.symbol, price.asset.name) if is_contract_address(v)), None
        )
        if address:
            pool = self._pool_by_address(address)
        else:
            pool = self._search_pool(price.asset)

        attrs = pool.get("attributes") if isinstance(pool, dict) else None
        if not isinstance(attrs, dict):
            raise DecodeError(self.provider_name, "pool missing attributes")
        raw = attrs.get("base_token_price_usd")
        if raw is None:
            raise QuoteNotFoundError(
                self.provider_name, f"no USD price for pool of {price.asset.symbol}"
            )

        price.value = parse_price(self.provider_name, raw)
        price.source = self.provider_name
        price.network = self._network
        price.pool_address = attrs.get("address") or address

        if address:
            # Contract lookups learn the human-readable symbol from the pool name.
            pool_name = str(attrs.get("name") or "")
            symbol = extract_symbol(pool_name) or price.asset.symbol
            price.asset = Asset(
                symbol=symbol, name=pool_name, price_source=price.asset.price_source
            )

    def fetch_many(self, *prices: Price) -> None:
        for p in prices:
            try:
                self.fetch(p)
            except Exception as exc:
                logger.debug("geckoterminal: skipping %s: %s", p.asset.symbol, exc)

    def fetch_all(self) -> List[Price]:
        data = self._get(f"networks/{self._network}/trending_pools", {"page": 1})
        pools = data.get("data") if isinstance(data, dict) else None
        if not isinstance(pools, list):
            raise DecodeError(self.provider_name, "response missing data list")

        seen = set()
        out: List[Price] = []
        for pool in pools:
            attrs = safe_get(pool, "attributes") or {}
            raw = attrs.get("base_token_price_usd")
            try:
                value = float(raw)
            except (TypeError, ValueError):
                continue
            if value == 0:
                continue
            token_id = str(safe_get(pool, "relationships.base_token.data.id", "") or "")
            if "_" not in token_id:
                continue
            symbol = extract_symbol(str(attrs.get("name") or ""))
            if not symbol or symbol in seen:
                continue
            seen.add(symbol)
            out.append(
                Price(
                    asset=Asset(symbol=symbol, name=str(attrs.get("name") or "")),
                    value=value,
                    source=self.provider_name,
                    pool_address=token_id.split("_", 1)[1],
                    network=self._network,
                )
            )
        return out

    def _pool_by_address(self, address: str) -> Dict[str, Any]:
        data = self._get(f"networks/{self._network}/pools/{address.lower()}")
        pool = data.get("data") if isinstance(data, dict) else None
        if not isinstance(pool, dict):
            raise QuoteNotFoundError(self.provider_name, f"pool not found: {address}")
        return pool

    def _search_pool(self, asset: Asset) -> Dict[str, Any]:
        query = asset.symbol
        if asset.name and asset.name.lower() != asset.symbol.lower():
            query = asset.name.lower()
        data = self._get(
            "search/pools", {"query": query, "network": self._network, "page": 1}
        )
        pools = data.get("data") if isinstance(data, dict) else None
        if not pools:
            raise QuoteNotFoundError(self.provider_name, f"no pools found for {query}")
        return pools[0]
