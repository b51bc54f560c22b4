"""
CryptoCompare price provider.

Uses the CryptoCompare min-api (API key optional, raises rate limits):
  GET https://min-api.cryptocompare.com/data/price?fsym={SYM}&tsyms=USD
  GET https://min-api.cryptocompare.com/data/pricemulti?fsyms={A,B}&tsyms=USD
  GET https://min-api.cryptocompare.com/data/top/mktcapfull?limit=100&tsym=USD
"""

from __future__ import annotations

from typing import Dict, List, Optional

from ...core.errors import DecodeError, QuoteNotFoundError
from ..base import HTTP_TIMEOUT_S, Asset, Price, fill_stablecoin, http_get_json, parse_price, safe_get

CRYPTOCOMPARE_BASE_URL = "https://min-api.cryptocompare.com/data"
CATALOG_LIMIT = 100


class CryptoComparePriceProvider:
    """Fetch USD prices from CryptoCompare."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = CRYPTOCOMPARE_BASE_URL,
        timeout_s: float = HTTP_TIMEOUT_S,
    ) -> None:
        self._api_key = api_key or None
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s

    @property
    def provider_name(self) -> str:
        return "cryptocompare"

    def _headers(self) -> Dict[str, str]:
        if self._api_key:
            return {"authorization": f"Apikey {self._api_key}"}
        return {}

    def _get(self, path: str, params: Dict[str, object]) -> object:
        return http_get_json(
            self.provider_name,
            f"{self._base_url}/{path}",
            params=params,
            headers=self._headers(),
            timeout=self._timeout_s,
        )

    def fetch(self, price: Price) -> None:
        if fill_stablecoin(price, self.provider_name):
            return
        symbol = price.asset.symbol.strip().upper()
        data = self._get("price", {"fsym": symbol, "tsyms": "USD"})
        if not isinstance(data, dict):
            raise DecodeError(self.provider_name, f"unexpected response type: {type(data).__name__}")
        if "USD" not in data:
            raise QuoteNotFoundError(self.provider_name, f"price not found for {symbol}")
        price.value = parse_price(self.provider_name, data["USD"])
        price.source = self.provider_name

    def fetch_many(self, *prices: Price) -> None:
        by_symbol: Dict[str, List[Price]] = {}
        for p in prices:
            if fill_stablecoin(p, self.provider_name):
                continue
            by_symbol.setdefault(p.asset.symbol.strip().upper(), []).append(p)
        if not by_symbol:
            return

        data = self._get("pricemulti", {"fsyms": ",".join(by_symbol), "tsyms": "USD"})
        if not isinstance(data, dict):
            raise DecodeError(self.provider_name, f"unexpected response type: {type(data).__name__}")

        # Symbols missing from the response keep their prior value.
        for symbol, quote in data.items():
            usd = quote.get("USD") if isinstance(quote, dict) else None
            if usd is None:
                continue
            value = parse_price(self.provider_name, usd)
            for p in by_symbol.get(str(symbol).upper(), ()):
                p.value = value
                p.source = self.provider_name

    def fetch_all(self) -> List[Price]:
        data = self._get("top/mktcapfull", {"limit": CATALOG_LIMIT, "tsym": "USD"})
        rows = data.get("Data") if isinstance(data, dict) else None
        if not isinstance(rows, list):
            raise DecodeError(self.provider_name, "response missing Data list")

        out: List[Price] = []
        for coin in rows:
            value = safe_get(coin, "RAW.USD.PRICE")
            name = safe_get(coin, "CoinInfo.Name")
            if not value or not name:
                continue
            out.append(
                Price(
                    asset=Asset(
                        symbol=str(name).upper(),
                        name=str(safe_get(coin, "CoinInfo.FullName", "") or ""),
                    ),
                    value=parse_price(self.provider_name, value),
                    source=self.provider_name,
                )
            )
        return out
