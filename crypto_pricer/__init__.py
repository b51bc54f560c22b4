"""
Top-level public API surface.
Canonical entrypoint: import crypto_pricer; use crypto_pricer.providers, crypto_pricer.services, etc.
Does not import cli.
"""

from __future__ import annotations

from . import core, providers, runtime, services
from ._version import __version__

# Do not add exports without updating __all__.
__all__ = [
    "__version__",
    "core",
    "providers",
    "runtime",
    "services",
]
