"""
Kraken spot price provider.

Uses the public Kraken API (no authentication required):
  GET https://api.kraken.com/0/public/Ticker?pair={pair[,pair...]}
  GET https://api.kraken.com/0/public/Ticker                   (all pairs)
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from ...core.errors import DecodeError, ProviderError, QuoteNotFoundError
from ..base import HTTP_TIMEOUT_S, Asset, Price, fill_stablecoin, http_get_json, parse_price

KRAKEN_BASE_URL = "https://api.kraken.com/0/public"

_SYMBOL_TO_PAIR = {
    "BTC": "XXBTZUSD",
    "ETH": "XETHZUSD",
}

# Kraken asset codes that differ from the common ticker.
_ASSET_ALIASES = {
    "XBT": "BTC",
    "XDG": "DOGE",
}


def to_kraken_pair(symbol: str) -> str:
    symbol = symbol.strip().upper()
    return _SYMBOL_TO_PAIR.get(symbol, f"{symbol}USD")


def from_kraken_pair(pair: str) -> str:
    """
    Kraken pair name -> plain asset symbol.

    Legacy 8-char names carry X/Z class prefixes (XXBTZUSD -> BTC, XZECZUSD -> ZEC);
    everything else is BASE+USD (SOLUSD -> SOL, XTZUSD -> XTZ, XDGUSD -> DOGE).
    """
    pair = pair.upper()
    if len(pair) == 8 and pair[0] == "X" and pair[4] == "Z":
        base = pair[1:4]
    elif pair.endswith("USD"):
        base = pair[:-3]
    else:
        base = pair
    return _ASSET_ALIASES.get(base, base)


def is_usd_pair(pair: str) -> bool:
    return pair.upper().endswith("USD")


def _last_trade(entry: Any) -> Any:
    # 'c' is last trade closed [price, lot volume]
    if not isinstance(entry, dict):
        return None
    close = entry.get("c")
    if not close:
        return None
    return close[0]


class KrakenPriceProvider:
    """Fetch USD prices from the Kraken public API."""

    def __init__(self, base_url: str = KRAKEN_BASE_URL, timeout_s: float = HTTP_TIMEOUT_S) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s

    @property
    def provider_name(self) -> str:
        return "kraken"

    def fetch(self, price: Price) -> None:
        if fill_stablecoin(price, self.provider_name):
            return
        symbol = price.asset.symbol.strip().upper()
        result = self._ticker(to_kraken_pair(symbol))

        for entry in result.values():
            last = _last_trade(entry)
            if last is not None:
                price.value = parse_price(self.provider_name, last)
                price.source = self.provider_name
                return

        raise QuoteNotFoundError(self.provider_name, f"no price found for {symbol}")

    def fetch_many(self, *prices: Price) -> None:
        by_symbol: Dict[str, List[Price]] = {}
        for p in prices:
            if fill_stablecoin(p, self.provider_name):
                continue
            symbol = p.asset.symbol.strip().upper()
            by_symbol.setdefault(symbol, []).append(p)
        if not by_symbol:
            return

        pairs = ",".join(to_kraken_pair(s) for s in by_symbol)
        result = self._ticker(pairs)

        # Symbols Kraken does not answer for keep their prior value.
        for pair_name, entry in result.items():
            last = _last_trade(entry)
            if last is None:
                continue
            try:
                value = float(last)
            except (TypeError, ValueError):
                continue
            for p in by_symbol.get(from_kraken_pair(pair_name), ()):
                p.value = value
                p.source = self.provider_name

    def fetch_all(self) -> List[Price]:
        result = self._ticker(None)
        seen = set()
        out: List[Price] = []
        for pair_name, entry in result.items():
            if not is_usd_pair(pair_name):
                continue
            last = _last_trade(entry)
            if last is None:
                continue
            try:
                value = float(last)
            except (TypeError, ValueError):
                continue
            symbol = from_kraken_pair(pair_name)
            if symbol in seen:
                continue
            seen.add(symbol)
            out.append(
                Price(asset=Asset(symbol=symbol, name=symbol), value=value, source=self.provider_name)
            )
        return out

    def _ticker(self, pair: Optional[str]) -> Dict[str, Any]:
        params = {"pair": pair} if pair else None
        data = http_get_json(
            self.provider_name,
            f"{self._base_url}/Ticker",
            params=params,
            timeout=self._timeout_s,
        )
        if not isinstance(data, dict):
            raise DecodeError(self.provider_name, f"unexpected response type: {type(data).__name__}")
        if data.get("error"):
            raise ProviderError(
                self.provider_name, f"kraken API error: {', '.join(map(str, data['error']))}"
            )
        result = data.get("result")
        if not isinstance(result, dict):
            raise DecodeError(self.provider_name, "response missing result")
        return result
