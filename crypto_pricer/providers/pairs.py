"""
Pair resolution by anchor-currency triangulation.

Given every directly quoted pair from one exchange snapshot, derive BASE+QUOTE
prices that are not quoted directly by chaining BASE->ANCHOR and ANCHOR->USDT.
Anchors are tried in a fixed priority order (quote currencies ranked by pair
count on Binance).
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

from ..core.errors import PairNotFoundError

IDENTITY_PAIRS = frozenset({
    "USDUSDT",
    # The ANCHOR+USDT leg of a USDT-anchored chain; Binance never quotes it.
    "USDTUSDT",
})

# Ordered by pair count desc, as listed by the Binance exchange info.
ANCHORS: List[str] = [
    "USDT",
    "USD",
    "BTC",
    "TRY",
    "USDC",
    "BNB",
    "ETH",
    "EUR",
    "IDR",
    "BRL",
    "JPY",
    "RUB",
    "GBP",
    "AUD",
    "USD1",
    "UAH",
    "PLN",
    "ARS",
    "DAI",
    "MXN",
    "RON",
    "DRT",
    "ZAR",
    "EURI",
    "USDP",
    "CZK",
    "NGN",
    "VAI",
    "BVND",
    "XRP",
    "SOL",
    "DOT",
    "COP",
    "DOGE",
    "TRX",
]


def anchor_index(prices: Mapping[str, float]) -> Dict[str, Set[str]]:
    """anchor -> set of bases with a directly known BASE+ANCHOR price. Build once per snapshot."""
    bases: Dict[str, Set[str]] = {}
    for anchor in ANCHORS:
        for pair in prices:
            if pair.endswith(anchor):
                bases.setdefault(anchor, set()).add(pair[: -len(anchor)])
    return bases


def _split_base(pair: str) -> str:
    """Strip the anchor suffix; the last matching anchor in priority order wins."""
    base = ""
    for anchor in ANCHORS:
        if pair.endswith(anchor):
            base = pair[: -len(anchor)]
    return base


def resolve_pair_price(
    pair: str,
    prices: Mapping[str, float],
    index: Optional[Mapping[str, Set[str]]] = None,
) -> float:
    """
    Price of `pair` (BASE+QUOTE concatenation) in USDT terms.

    Direct quotes win. Otherwise the first anchor (priority order) that quotes
    BASE is used: price(BASE+ANCHOR) * price(ANCHOR+USDT), both resolved
    recursively. A zero BASE+ANCHOR price skips to the next anchor; any other
    failure in the chain propagates.

    `index` is anchor_index(prices); pass it when resolving many pairs
    against the same snapshot.

    Raises PairNotFoundError when no chain exists. No cycle guard: recursion
    ends only at a direct quote or an identity pair.
    """
    if pair in IDENTITY_PAIRS:
        return 1.0

    direct = prices.get(pair)
    if direct is not None:
        return direct

    base = _split_base(pair)
    if not base:
        raise PairNotFoundError(pair)

    if index is None:
        index = anchor_index(prices)
    for anchor in ANCHORS:
        if base not in index.get(anchor, ()):
            continue
        base_anchor = resolve_pair_price(base + anchor, prices, index)
        if base_anchor == 0:
            continue
        anchor_usdt = resolve_pair_price(anchor + "USDT", prices, index)
        return base_anchor * anchor_usdt

    raise PairNotFoundError(pair)


def build_pair_map(rows: Iterable[Mapping[str, Any]]) -> Dict[str, float]:
    """[{symbol, price}] ticker rows -> {symbol: price}. Unparsable prices become 0.0."""
    out: Dict[str, float] = {}
    for row in rows:
        symbol = row.get("symbol")
        if not symbol:
            continue
        try:
            out[str(symbol)] = float(row.get("price"))
        except (TypeError, ValueError):
            out[str(symbol)] = 0.0
    return out
