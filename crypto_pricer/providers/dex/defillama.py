"""
DefiLlama coins price provider.

  GET https://coins.llama.fi/prices/current/{coin[,coin...]}

Coins are addressed as '{chain}:{contract}' or 'coingecko:{id}'.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from ...core.errors import DecodeError, QuoteNotFoundError, UnsupportedOperationError
from ..base import HTTP_TIMEOUT_S, Price, fill_stablecoin, http_get_json, parse_price
from .geckoterminal import is_contract_address

DEFILLAMA_BASE_URL = "https://coins.llama.fi"
DEFAULT_NETWORK = "ethereum"


class DefiLlamaPriceProvider:
    """Fetch USD prices from the DefiLlama coins API."""

    def __init__(
        self,
        network: str = DEFAULT_NETWORK,
        contract: Optional[str] = None,
        base_url: str = DEFILLAMA_BASE_URL,
        timeout_s: float = HTTP_TIMEOUT_S,
    ) -> None:
        self._network = network
        self._contract = contract or None
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s

    @property
    def provider_name(self) -> str:
        return "defillama"

    def coin_id(self, price: Price) -> str:
        if self._contract:
            return f"{self._network}:{self._contract}"
        name = price.asset.name.strip()
        if is_contract_address(name):
            return f"{self._network}:{name}"
        return f"coingecko:{(name or price.asset.symbol).lower()}"

    def _coins(self, ids: str) -> Dict[str, Any]:
        data = http_get_json(
            self.provider_name,
            f"{self._base_url}/prices/current/{ids}",
            timeout=self._timeout_s,
        )
        coins = data.get("coins") if isinstance(data, dict) else None
        if not isinstance(coins, dict):
            raise DecodeError(self.provider_name, "response missing coins")
        return coins

    def fetch(self, price: Price) -> None:
        if fill_stablecoin(price, self.provider_name):
            return
        coin = self.coin_id(price)
        coins = self._coins(coin)
        if not coins:
            raise QuoteNotFoundError(self.provider_name, f"no price found for {coin}")

        entry = next(iter(coins.values()))
        price.value = parse_price(self.provider_name, (entry or {}).get("price"))
        price.source = self.provider_name
        if ":0x" in coin:
            network, address = coin.split(":", 1)
            price.network = network
            price.pool_address = address

    def fetch_many(self, *prices: Price) -> None:
        by_id: Dict[str, List[Price]] = {}
        for p in prices:
            if fill_stablecoin(p, self.provider_name):
                continue
            by_id.setdefault(self.coin_id(p), []).append(p)
        if not by_id:
            return

        coins = self._coins(",".join(by_id))
        for coin, entry in coins.items():
            if not isinstance(entry, dict) or entry.get("price") is None:
                continue
            value = parse_price(self.provider_name, entry["price"])
            for p in by_id.get(coin, ()):
                p.value = value
                p.source = self.provider_name

    def fetch_all(self) -> List[Price]:
        raise UnsupportedOperationError(self.provider_name, "catalog listing is not supported")
