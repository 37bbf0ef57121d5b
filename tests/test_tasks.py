"""Tests for the Redis queue tasks."""

from unittest.mock import MagicMock

import pytest

from storekb import tasks
from storekb.cache import RedisCacheStore
from storekb.repository import SnapshotRepository
from storekb.scanner import build_scanner

from tests.conftest import CountingRepository, FakeRedis


@pytest.fixture
def shared_cache():
    """Redis cache store shared between the worker task and a consumer."""
    return RedisCacheStore(client=FakeRedis(), prefix="storekb:scanner")


def _use_repository(monkeypatch, repository, shared_cache):
    requested = []

    def fake_build_cache_store(backend=None, prefix=None):
        requested.append(backend)
        return shared_cache

    monkeypatch.setattr(tasks, "build_cache_store", fake_build_cache_store)
    monkeypatch.setattr(tasks, "build_scanner", lambda cache: build_scanner(repository=repository, cache=cache))
    return requested


def test_scan_all_task_returns_report_envelope(monkeypatch, store_data, shared_cache):
    _use_repository(monkeypatch, SnapshotRepository(store_data), shared_cache)

    result = tasks.scan_all_task({"include_posts": True})

    assert result["success"] is True
    assert result["summary"]["post"] == 1
    assert result["errors"] == []
    assert "data" not in result


def test_scan_all_task_reports_errors(monkeypatch, store_data, shared_cache):
    store_data["woocommerce"] = False
    _use_repository(monkeypatch, SnapshotRepository(store_data), shared_cache)

    result = tasks.scan_all_task()

    assert result["success"] is False
    assert [error["source"] for error in result["errors"]] == ["product", "setting"]


def test_warmed_results_are_served_to_other_scanners(monkeypatch, store_data, shared_cache):
    repository = CountingRepository(SnapshotRepository(store_data))
    requested = _use_repository(monkeypatch, repository, shared_cache)
    monkeypatch.setattr(tasks.settings, "cache_backend", "memory")

    tasks.scan_all_task()
    consumer = build_scanner(repository=repository, cache=shared_cache)
    chunks = consumer.scan_products()

    assert requested == ["redis"]
    assert [chunk.id for chunk in chunks] == [101, 102]
    assert repository.calls["list_products"] == 1
    assert consumer.get_last_scan_stats("product")["cache_hit"] is True


def test_enqueue_scan_all():
    queue = MagicMock()
    queue.name = "q:kb-scan"
    queue.enqueue.return_value = MagicMock(id="job-1")

    job = tasks.enqueue_scan_all({"force_refresh": True}, queue=queue)

    assert job.id == "job-1"
    queue.enqueue.assert_called_once_with(
        "storekb.tasks.scan_all_task",
        {"force_refresh": True},
        job_timeout=1800,
        result_ttl=86400,
        failure_ttl=86400,
        meta={"options": {"force_refresh": True}},
    )
