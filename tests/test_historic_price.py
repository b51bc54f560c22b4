"""Historic price snapshots: empty no-op, shared timestamp, insert failures."""

from __future__ import annotations

import threading
from datetime import datetime, timezone

import pytest

from crypto_pricer.core.errors import ConfigurationError
from crypto_pricer.services.historic_price import (
    HistoricPriceConfig,
    HistoricPriceService,
    create_historic_price_service,
)
from tests.fakes.repositories import FakeFetcher, FakeHistoricValueRepository

NOW = datetime(2026, 1, 1, 0, 0, tzinfo=timezone.utc)


def _service(repo, fetcher):
    return HistoricPriceService(
        HistoricPriceConfig(fetcher=fetcher, repo=repo, cancel_event=threading.Event()),
        utc_now=lambda: NOW,
    )


class TestHistoricPrice:
    def test_validation(self):
        with pytest.raises(ConfigurationError, match="repo"):
            HistoricPriceService(
                HistoricPriceConfig(fetcher=FakeFetcher(), repo=None, cancel_event=threading.Event())
            )

    def test_no_symbols_is_noop(self):
        fetcher = FakeFetcher()
        repo = FakeHistoricValueRepository([])
        assert _service(repo, fetcher).tick() == 0
        assert fetcher.batches == []
        assert repo.inserted == []

    def test_one_batch_one_insert_per_symbol(self):
        fetcher = FakeFetcher({"BTC": 50000.0, "ETH": 3000.0})
        repo = FakeHistoricValueRepository(["BTC", "ETH"])

        assert _service(repo, fetcher).tick() == 2

        assert fetcher.batches == [["BTC", "ETH"]]
        assert [(v.symbol, v.value) for v in repo.inserted] == [("BTC", 50000.0), ("ETH", 3000.0)]
        assert {v.timestamp for v in repo.inserted} == {NOW}

    def test_fetch_failure_raises(self):
        repo = FakeHistoricValueRepository(["BTC"])
        with pytest.raises(RuntimeError):
            _service(repo, FakeFetcher(fail=True)).tick()
        assert repo.inserted == []

    def test_insert_failure_is_skipped(self, caplog):
        fetcher = FakeFetcher({"BTC": 1.0, "ETH": 2.0, "SOL": 3.0})
        repo = FakeHistoricValueRepository(["BTC", "ETH", "SOL"], fail_on=["ETH"])

        with caplog.at_level("ERROR", logger="crypto_pricer.services.historic_price"):
            inserted = _service(repo, fetcher).tick()

        assert inserted == 2
        assert [v.symbol for v in repo.inserted] == ["BTC", "SOL"]
        assert "failed to store ETH" in caplog.text

    def test_start_and_stop(self):
        svc = _service(FakeHistoricValueRepository([]), FakeFetcher())
        svc.start()
        svc.stop()


class TestFromConfig:
    def test_defaults(self, monkeypatch, tmp_path):
        monkeypatch.setenv("CRYPTO_PRICER_CONFIG", str(tmp_path / "missing.yaml"))
        svc = create_historic_price_service(
            FakeFetcher(), FakeHistoricValueRepository([]), threading.Event()
        )
        assert svc.config.interval == 86400.0
        assert svc.config.target_hour is None

    def test_interval_and_target_hour_from_yaml(self, monkeypatch, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("historic:\n  interval_seconds: 3600\n  target_hour: 2\n", encoding="utf-8")
        monkeypatch.setenv("CRYPTO_PRICER_CONFIG", str(path))

        fetcher = FakeFetcher({"BTC": 50000.0})
        repo = FakeHistoricValueRepository(["BTC"])
        svc = create_historic_price_service(fetcher, repo, threading.Event(), utc_now=lambda: NOW)

        assert (svc.config.interval, svc.config.target_hour) == (3600.0, 2)
        assert svc.tick() == 1
        assert repo.inserted[0].timestamp == NOW

    def test_bad_target_hour_rejected(self, monkeypatch, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("historic:\n  target_hour: 25\n", encoding="utf-8")
        monkeypatch.setenv("CRYPTO_PRICER_CONFIG", str(path))
        with pytest.raises(ConfigurationError, match="target_hour"):
            create_historic_price_service(
                FakeFetcher(), FakeHistoricValueRepository([]), threading.Event()
            )
