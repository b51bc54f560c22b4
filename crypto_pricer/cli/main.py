"""
Top-level CLI dispatcher: crypto-pricer <command> [args...].
Commands: fetch, quote, catalog, providers, watch.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import threading
from typing import List, Optional

from .. import config as cfg
from ..core.errors import CryptoPricerError
from ..providers.base import Asset, Price, price_for
from ..providers.defaults import create_price_service
from ..runtime.cache import LiveCache
from ..runtime.pubsub import PubSub, PubSubConfig, new_queue
from ..services.live_price import LivePriceConfig, LivePriceService
from ..services.models import PRICES_TOPIC


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, cfg.log_level(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _print_price(p: Price) -> None:
    extra = ""
    if p.pool_address:
        extra = f"  pool={p.pool_address} network={p.network}"
    print(f"{p.asset.symbol:<12} {p.value:>20.8f}  {p.source}{extra}")


class _StaticAssets:
    """Asset repository over a fixed holdings list (for watch)."""

    def __init__(self, symbols: List[str]) -> None:
        self._assets = [Asset(symbol=s) for s in symbols]

    def get_all_assets(self) -> List[Asset]:
        return list(self._assets)


def _cmd_fetch(args: argparse.Namespace) -> int:
    service = create_price_service()
    prices = [price_for(s.upper()) for s in args.symbols]
    service.fetch_many(*prices)
    for p in prices:
        _print_price(p)
    return 0


def _cmd_quote(args: argparse.Namespace) -> int:
    service = create_price_service()
    price = price_for(args.symbol.upper(), args.name or "")
    if args.source:
        service.fetch_by_source(args.source, price)
    else:
        service.fetch(price)
    _print_price(price)
    return 0


def _cmd_catalog(args: argparse.Namespace) -> int:
    service = create_price_service()
    prices = service.fetch_all()
    if args.limit:
        prices = prices[: args.limit]
    for p in prices:
        _print_price(p)
    print(f"{len(prices)} prices")
    return 0


def _cmd_providers(args: argparse.Namespace) -> int:
    service = create_price_service()
    for i, name in enumerate(service.provider_names, start=1):
        print(f"{i}. {name}")
    return 0


def _cmd_watch(args: argparse.Namespace) -> int:
    service = create_price_service()
    cancel = threading.Event()
    pubsub = PubSub(
        PubSubConfig(topic=PRICES_TOPIC, queue=new_queue(cfg.pubsub_queue_size()), cancel_event=cancel)
    )
    seen = {"ticks": 0}

    def _on_prices(payload: bytes) -> None:
        print(json.dumps(json.loads(payload), sort_keys=True), flush=True)
        seen["ticks"] += 1
        if args.ticks and seen["ticks"] >= args.ticks:
            cancel.set()

    live = LivePriceService(
        LivePriceConfig(
            cache=LiveCache(),
            fetcher=service,
            publisher=pubsub,
            repo=_StaticAssets([s.upper() for s in args.symbols]),
            cancel_event=cancel,
            interval=args.interval or cfg.live_interval_seconds(),
            resync_interval=cfg.live_resync_interval_seconds(),
        )
    )
    pubsub.subscribe(_on_prices)
    live.start()
    try:
        cancel.wait()
    except KeyboardInterrupt:
        cancel.set()
    finally:
        live.stop()
        pubsub.join(timeout=1.0)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="crypto-pricer",
        description="USD prices for crypto assets with provider fallback",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Command")

    p = subparsers.add_parser("fetch", help="Batch fetch prices for symbols")
    p.add_argument("symbols", nargs="+", metavar="SYMBOL")
    p.set_defaults(func=_cmd_fetch)

    p = subparsers.add_parser("quote", help="Fetch one symbol, optionally from one provider")
    p.add_argument("symbol", metavar="SYMBOL")
    p.add_argument("--source", default=None, help="Provider name (no fallback)")
    p.add_argument("--name", default=None, help="Asset name or contract address (DEX providers)")
    p.set_defaults(func=_cmd_quote)

    p = subparsers.add_parser("catalog", help="List every price the first healthy provider quotes")
    p.add_argument("--limit", type=int, default=0)
    p.set_defaults(func=_cmd_catalog)

    p = subparsers.add_parser("providers", help="List providers in priority order")
    p.set_defaults(func=_cmd_providers)

    p = subparsers.add_parser("watch", help="Publish live prices for symbols on an interval")
    p.add_argument("symbols", nargs="+", metavar="SYMBOL")
    p.add_argument("--interval", type=float, default=None, help="Seconds between ticks")
    p.add_argument("--ticks", type=int, default=0, help="Stop after N published maps (0 = forever)")
    p.set_defaults(func=_cmd_watch)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0

    _configure_logging(args.verbose)
    try:
        return args.func(args)
    except CryptoPricerError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
