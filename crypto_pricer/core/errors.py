"""
Shared exception types for crypto_pricer.
Stable surface; extend only. Catch CryptoPricerError for any package-raised error.
"""

from __future__ import annotations

from typing import Dict, Optional


class CryptoPricerError(Exception):
    """Base exception for crypto_pricer; catch this for any package-raised error."""

    pass


class ConfigurationError(CryptoPricerError):
    """A service or primitive was built with a missing or invalid dependency. Fatal at startup."""

    pass


# ---------------------------------------------------------------------------
# Provider failures
# ---------------------------------------------------------------------------


class ProviderError(CryptoPricerError):
    """A single market-data provider failed. `provider` names the adapter."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(message)
        self.provider = provider
        self.message = message


class TransportError(ProviderError):
    """Network failure or timeout talking to a provider."""

    pass


class StatusError(TransportError):
    """Provider answered with a non-success HTTP status."""

    def __init__(self, provider: str, status_code: int, message: Optional[str] = None) -> None:
        super().__init__(provider, message or f"unexpected status code: {status_code}")
        self.status_code = status_code


class DecodeError(ProviderError):
    """Provider payload could not be decoded into prices."""

    pass


class QuoteNotFoundError(ProviderError):
    """Provider answered but has no quote for the requested symbol."""

    pass


class UnsupportedOperationError(ProviderError):
    """Provider cannot serve this kind of request at all (e.g. no catalog endpoint)."""

    pass


class UnknownProviderError(CryptoPricerError, KeyError):
    """A provider name is not part of the configured registry."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


# ---------------------------------------------------------------------------
# Resolution / aggregation
# ---------------------------------------------------------------------------


class PairNotFoundError(CryptoPricerError):
    """No direct quote and no anchor chain could price the pair."""

    def __init__(self, pair: str) -> None:
        super().__init__(f"price for pair not found: {pair}")
        self.pair = pair


class AllProvidersFailedError(CryptoPricerError):
    """Every configured provider failed for the whole call. `errors` maps provider name -> exception."""

    def __init__(self, operation: str, errors: Dict[str, Exception]) -> None:
        detail = "; ".join(f"{name} error: {exc}" for name, exc in errors.items())
        super().__init__(f"all price providers failed to {operation}: {detail}")
        self.operation = operation
        self.errors = dict(errors)


# ---------------------------------------------------------------------------
# Runtime primitives
# ---------------------------------------------------------------------------


class SchedulerError(CryptoPricerError):
    """Scheduler misuse (e.g. started twice)."""

    pass


class PubSubError(CryptoPricerError):
    """Base for publish/subscribe failures."""

    pass


class PublishCancelledError(PubSubError):
    """Cancellation fired while a publish was waiting for queue space."""

    pass


class QueueClosedError(PubSubError):
    """The subscriber loop has exited and closed the queue."""

    pass


__all__ = [
    "AllProvidersFailedError",
    "ConfigurationError",
    "CryptoPricerError",
    "DecodeError",
    "PairNotFoundError",
    "ProviderError",
    "PubSubError",
    "PublishCancelledError",
    "QueueClosedError",
    "QuoteNotFoundError",
    "SchedulerError",
    "StatusError",
    "TransportError",
    "UnknownProviderError",
    "UnsupportedOperationError",
]
