"""
Stable facade: shared error types only.
Do not add exports without updating __all__.
"""

from __future__ import annotations

from .errors import (
    AllProvidersFailedError,
    ConfigurationError,
    CryptoPricerError,
    DecodeError,
    PairNotFoundError,
    ProviderError,
    QuoteNotFoundError,
    StatusError,
    TransportError,
)

# Do not add exports without updating __all__.
__all__ = [
    "AllProvidersFailedError",
    "ConfigurationError",
    "CryptoPricerError",
    "DecodeError",
    "PairNotFoundError",
    "ProviderError",
    "QuoteNotFoundError",
    "StatusError",
    "TransportError",
]
