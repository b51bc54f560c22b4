"""
Provider interfaces and data contracts.

Every market-data adapter implements PriceProvider:
- fetch(price): fill one Price in place
- fetch_many(*prices): fill a batch in place
- fetch_all(): catalog snapshot of every price the provider can quote

Prices are always USD. Stablecoins short-circuit to 1.0 before any request.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, List, Mapping, Optional, Protocol, runtime_checkable

import requests

from ..core.errors import DecodeError, StatusError, TransportError

HTTP_TIMEOUT_S = 10.0

STABLECOIN_SYMBOLS = frozenset({"USD", "USDT", "USDC"})


@dataclass(frozen=True)
class Asset:
    """Tracked instrument. `symbol` is the stable key used everywhere else."""

    symbol: str
    name: str = ""
    price_source: Optional[str] = None


@dataclass
class Price:
    """
    USD price of one asset, filled in place by providers.
    pool_address/network are only set by DEX-backed providers.
    """

    asset: Asset
    value: float = 0.0
    source: str = ""
    pool_address: Optional[str] = None
    network: Optional[str] = None

    def copy(self) -> Price:
        return replace(self)

    def update_from(self, other: Price) -> None:
        """Copy the quote fields of another Price into this one (asset included)."""
        self.asset = other.asset
        self.value = other.value
        self.source = other.source
        self.pool_address = other.pool_address
        self.network = other.network


def price_for(symbol: str, name: str = "") -> Price:
    """Empty Price for a symbol, ready to be filled by a provider."""
    return Price(asset=Asset(symbol=symbol, name=name))


def is_stablecoin(symbol: str) -> bool:
    return symbol.strip().upper() in STABLECOIN_SYMBOLS


def fill_stablecoin(price: Price, source: str) -> bool:
    """Set value to 1.0 if the asset is a USD stablecoin. Returns True if it was."""
    if not is_stablecoin(price.asset.symbol):
        return False
    price.value = 1.0
    price.source = source
    return True


@runtime_checkable
class PriceProvider(Protocol):
    """Protocol for USD price providers."""

    @property
    def provider_name(self) -> str: ...

    def fetch(self, price: Price) -> None:
        """Fill price.value for price.asset.symbol."""
        ...

    def fetch_many(self, *prices: Price) -> None:
        """Fill every price in the batch."""
        ...

    def fetch_all(self) -> List[Price]:
        """Return every price currently quotable by this provider."""
        ...


def http_get_json(
    provider: str,
    url: str,
    *,
    params: Optional[Mapping[str, Any]] = None,
    headers: Optional[Mapping[str, str]] = None,
    timeout: float = HTTP_TIMEOUT_S,
    not_found_statuses: tuple[int, ...] = (),
) -> Any:
    """
    GET url and decode JSON, mapping failures onto the provider error taxonomy:
    network/timeout -> TransportError, non-200 -> StatusError, bad JSON -> DecodeError.
    Statuses in not_found_statuses are returned as None so callers can report quote-not-found.
    """
    try:
        resp = requests.get(url, params=params, headers=dict(headers or {}), timeout=timeout)
    except requests.RequestException as exc:
        raise TransportError(provider, f"failed to fetch {url}: {exc}") from exc

    if resp.status_code in not_found_statuses:
        return None
    if resp.status_code != 200:
        raise StatusError(provider, resp.status_code)

    try:
        return resp.json()
    except ValueError as exc:
        raise DecodeError(provider, f"failed to decode response: {exc}") from exc


def parse_price(provider: str, raw: Any) -> float:
    """Decimal string or number -> float; anything else is a DecodeError."""
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise DecodeError(provider, f"invalid price format: {raw!r}") from exc


def safe_get(d: Any, path: str, default: Any = None) -> Any:
    cur: Any = d
    for key in path.split("."):
        if not isinstance(cur, dict) or key not in cur:
            return default
        cur = cur[key]
    return cur
