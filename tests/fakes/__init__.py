"""Fake providers, repositories and publishers for tests (no live network)."""

from .providers import (
    FakePriceProvider,
    FakePriceProviderAlwaysFail,
    FakePriceProviderFailNThenSucceed,
)
from .repositories import (
    FakeAssetHistoricRepository,
    FakeAssetRepository,
    FakeFetcher,
    FakeHistoricValueRepository,
    RecordingPublisher,
)

__all__ = [
    "FakeAssetHistoricRepository",
    "FakeAssetRepository",
    "FakeFetcher",
    "FakeHistoricValueRepository",
    "FakePriceProvider",
    "FakePriceProviderAlwaysFail",
    "FakePriceProviderFailNThenSucceed",
    "RecordingPublisher",
]
