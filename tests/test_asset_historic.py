"""Asset-created seeding: idempotence, decode errors, fetch failures, subscriber wiring."""

from __future__ import annotations

import json
import threading
import time
from datetime import datetime, timezone

import pytest

from crypto_pricer.core.errors import ConfigurationError, DecodeError
from crypto_pricer.providers.base import Asset
from crypto_pricer.runtime.pubsub import new_queue
from crypto_pricer.services.asset_historic import (
    AssetHistoricConfig,
    AssetHistoricService,
    create_asset_historic_service,
)
from crypto_pricer.services.models import AssetCreatedEvent, HistoricValue
from tests.fakes.repositories import FakeAssetHistoricRepository, FakeFetcher

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def _service(repo, fetcher, cancel=None):
    return AssetHistoricService(
        AssetHistoricConfig(
            fetcher=fetcher,
            repo=repo,
            queue=new_queue(10),
            cancel_event=cancel or threading.Event(),
        ),
        utc_now=lambda: NOW,
    )


class TestAssetCreatedEvent:
    def test_json_shape(self):
        payload = AssetCreatedEvent.from_asset(Asset("SOL", "Solana"), 7).to_json()
        assert json.loads(payload) == {"id": 7, "symbol": "SOL", "name": "Solana"}

    def test_missing_symbol(self):
        with pytest.raises(DecodeError):
            AssetCreatedEvent.from_json(b'{"id": 1}')


class TestHandler:
    def test_validation(self):
        with pytest.raises(ConfigurationError, match="fetcher"):
            _service(FakeAssetHistoricRepository(), None)

    def test_seeds_one_value(self):
        repo = FakeAssetHistoricRepository()
        fetcher = FakeFetcher({"SOL": 150.0})
        svc = _service(repo, fetcher)

        assert svc.handle_asset_created(b'{"id": 1, "symbol": "SOL", "name": "Solana"}') is True
        assert repo.inserted == [HistoricValue(symbol="SOL", value=150.0, timestamp=NOW)]
        assert fetcher.batches == [["SOL"]]

    def test_existing_history_is_noop(self):
        existing = HistoricValue(symbol="SOL", value=140.0, timestamp=NOW)
        repo = FakeAssetHistoricRepository({"SOL": [existing]})
        fetcher = FakeFetcher({"SOL": 150.0})

        assert _service(repo, fetcher).handle_asset_created(b'{"symbol": "SOL"}') is False
        assert repo.inserted == []
        assert fetcher.batches == []

    def test_replayed_event_seeds_once(self):
        repo = FakeAssetHistoricRepository()
        svc = _service(repo, FakeFetcher({"ETH": 3000.0}))
        svc.handle_asset_created(b'{"symbol": "ETH"}')
        svc.handle_asset_created(b'{"symbol": "ETH"}')
        assert len(repo.inserted) == 1

    def test_malformed_payload(self):
        with pytest.raises(DecodeError):
            _service(FakeAssetHistoricRepository(), FakeFetcher()).handle_asset_created(b"not json")

    def test_fetch_failure_drops_event(self, caplog):
        repo = FakeAssetHistoricRepository()
        svc = _service(repo, FakeFetcher(fail=True))
        with caplog.at_level("ERROR", logger="crypto_pricer.services.asset_historic"):
            assert svc.handle_asset_created(b'{"symbol": "BTC"}') is False
        assert repo.inserted == []
        assert "failed to fetch price for BTC" in caplog.text


class TestSubscriber:
    def test_published_asset_is_seeded(self):
        cancel = threading.Event()
        repo = FakeAssetHistoricRepository()
        svc = _service(repo, FakeFetcher({"ARB": 1.25}), cancel)
        svc.start()

        svc.publish_asset_created(Asset("ARB", "Arbitrum"), asset_id=3)
        svc.publisher().publish(b"garbage")

        deadline = time.time() + 2
        while not repo.inserted and time.time() < deadline:
            time.sleep(0.01)
        cancel.set()
        svc.publisher().join(timeout=1)

        assert [(v.symbol, v.value) for v in repo.inserted] == [("ARB", 1.25)]
        assert svc.publisher().closed


class TestFromConfig:
    def test_queue_sized_from_config(self, monkeypatch, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("pubsub:\n  queue_size: 3\n", encoding="utf-8")
        monkeypatch.setenv("CRYPTO_PRICER_CONFIG", str(path))

        svc = create_asset_historic_service(
            FakeFetcher(), FakeAssetHistoricRepository(), threading.Event()
        )
        assert svc.config.queue.maxsize == 3
        assert svc.config.topic == "asset-created"
