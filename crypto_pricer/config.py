"""
Load config from config.yaml with optional env overrides.
Single source of truth for provider priority, cache TTL, HTTP timeout, and service intervals.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

import yaml

from .core.errors import ConfigurationError

# Defaults if no YAML or env
_DEFAULTS = {
    "providers": {
        "priority": ["binance", "kraken", "cryptocompare", "geckoterminal", "defillama"],
        "cache_ttl_seconds": 60,
        "http_timeout_seconds": 10,
        "cryptocompare_api_key": None,
        "geckoterminal_network": "eth",
        "defillama_network": "ethereum",
    },
    "live": {
        "interval_seconds": 60,
        "resync_interval_seconds": 3600,
    },
    "historic": {
        "interval_seconds": 86400,
        "target_hour": None,
    },
    "pubsub": {"queue_size": 10},
    "logging": {"level": "INFO"},
}


def _config_yaml_path() -> Path:
    """CRYPTO_PRICER_CONFIG if set, else config.yaml at repo root (parent of package dir)."""
    override = os.environ.get("CRYPTO_PRICER_CONFIG")
    if override:
        return Path(override)
    return Path(__file__).resolve().parent.parent / "config.yaml"


def _load_yaml() -> dict:
    config_path = _config_yaml_path()
    if not config_path.exists():
        return {}
    with open(config_path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"invalid config file {config_path}: {exc}") from exc
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    out = dict(base)
    for k, v in override.items():
        if k in out and isinstance(out[k], dict) and isinstance(v, dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _env_overrides() -> dict:
    overrides: dict = {}
    priority = os.environ.get("CRYPTO_PRICER_PROVIDERS")
    if priority:
        names = [n.strip() for n in priority.split(",") if n.strip()]
        overrides.setdefault("providers", {})["priority"] = names
    ttl = os.environ.get("CRYPTO_PRICER_CACHE_TTL")
    if ttl:
        overrides.setdefault("providers", {})["cache_ttl_seconds"] = ttl
    timeout = os.environ.get("CRYPTO_PRICER_HTTP_TIMEOUT")
    if timeout:
        overrides.setdefault("providers", {})["http_timeout_seconds"] = timeout
    api_key = os.environ.get("CRYPTOCOMPARE_API_KEY")
    if api_key:
        overrides.setdefault("providers", {})["cryptocompare_api_key"] = api_key
    level = os.environ.get("CRYPTO_PRICER_LOG_LEVEL")
    if level:
        overrides.setdefault("logging", {})["level"] = level
    return overrides


def get_config() -> dict:
    """Return merged config: defaults <- config.yaml <- env."""
    merged = _deep_merge(_DEFAULTS, _load_yaml())
    merged = _deep_merge(merged, _env_overrides())
    return merged


def _number(section: str, key: str) -> float:
    raw = get_config()[section][key]
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{section}.{key} must be a number, got {raw!r}") from exc


# Convenience accessors
def provider_priority() -> List[str]:
    raw = get_config()["providers"]["priority"]
    if isinstance(raw, str):
        raw = raw.split(",")
    return [str(n).strip() for n in raw if str(n).strip()]


def cache_ttl_seconds() -> float:
    return _number("providers", "cache_ttl_seconds")


def http_timeout_seconds() -> float:
    return _number("providers", "http_timeout_seconds")


def cryptocompare_api_key() -> Optional[str]:
    key = get_config()["providers"].get("cryptocompare_api_key")
    return str(key) if key else None


def geckoterminal_network() -> str:
    return str(get_config()["providers"]["geckoterminal_network"])


def defillama_network() -> str:
    return str(get_config()["providers"]["defillama_network"])


def live_interval_seconds() -> float:
    return _number("live", "interval_seconds")


def live_resync_interval_seconds() -> float:
    return _number("live", "resync_interval_seconds")


def historic_interval_seconds() -> float:
    return _number("historic", "interval_seconds")


def historic_target_hour() -> Optional[int]:
    hour = get_config()["historic"].get("target_hour")
    return None if hour is None else int(hour)


def pubsub_queue_size() -> int:
    return int(get_config()["pubsub"]["queue_size"])


def log_level() -> str:
    return str(get_config()["logging"]["level"]).upper()
