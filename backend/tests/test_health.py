"""Tests for database health reporting."""
from __future__ import annotations

import threading

from sqlalchemy.exc import OperationalError

from app.core.db import Database, PoolStats


def test_health_endpoint_reports_up(client) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "up"
    assert body["message"] == "It's healthy"
    for key in (
        "open_connections",
        "in_use",
        "idle",
        "wait_count",
        "wait_duration",
        "max_idle_closed",
        "max_lifetime_closed",
    ):
        assert key in body
    assert "error" not in body


def test_health_reports_down_when_ping_fails(database: Database, monkeypatch) -> None:
    def broken_ping() -> None:
        raise OperationalError("SELECT 1", {}, Exception("Can't connect"))

    monkeypatch.setattr(database, "_ping", broken_ping)
    stats = database.health()
    assert stats["status"] == "down"
    assert stats["error"].startswith("db down:")
    assert "Can't connect" in stats["error"]


def test_health_reports_down_on_timeout(database: Database, monkeypatch) -> None:
    release = threading.Event()
    monkeypatch.setattr(database, "_ping", lambda: release.wait(5))
    monkeypatch.setattr(database, "health_timeout", 0.05)
    try:
        stats = database.health()
    finally:
        release.set()
    assert stats == {"status": "down", "error": "db down: no response within 0.05s"}


def test_heavy_load_message(database: Database) -> None:
    database.stats.opened = 45
    stats = database.health()
    assert stats["status"] == "up"
    assert stats["message"] == "The database is experiencing heavy load."


def test_wait_events_message(database: Database) -> None:
    database.stats.wait_count = 1001
    assert "high number of wait events" in database.health()["message"]


def test_lifetime_churn_message_wins(database: Database) -> None:
    database.stats.max_idle_closed = 10
    database.stats.max_lifetime_closed = 10
    assert "max lifetime" in database.health()["message"]


def test_pool_stats_counts_connection_lifecycle() -> None:
    stats = PoolStats(recycle=-1)
    stats._on_connect(None, None)
    stats._on_connect(None, None)
    stats._on_checkout(None, None, None)
    assert (stats.open_connections, stats.in_use, stats.idle) == (2, 1, 1)

    stats._on_checkin(None, None)
    stats._on_close(None, None)
    assert (stats.open_connections, stats.in_use, stats.idle) == (1, 0, 1)
    assert stats.max_idle_closed == 1
    assert stats.max_lifetime_closed == 0


def test_pool_stats_attributes_expired_closes_to_lifetime() -> None:
    class Record:
        starttime = 0.0

    stats = PoolStats(recycle=60)
    stats._on_close(None, Record())
    assert stats.max_lifetime_closed == 1
    assert stats.max_idle_closed == 0


def test_session_records_wait_when_pool_exhausted(database: Database) -> None:
    database.capacity = 0
    with database.session():
        pass
    assert database.stats.wait_count == 1


def test_invalidated_connection_is_not_an_idle_close(database: Database) -> None:
    with database.engine.connect() as conn:
        conn.invalidate()

    stats = database.health()

    assert stats["status"] == "up"
    assert stats["message"] == "It's healthy"
    assert stats["max_idle_closed"] == "0"
    assert database.stats.invalidated == 1


def test_pool_stats_skips_invalidated_close() -> None:
    stats = PoolStats(recycle=-1)
    connection = object()
    stats._on_connect(connection, None)
    stats._on_invalidate(connection, None, None)
    stats._on_close(connection, None)
    assert stats.closed == 1
    assert stats.max_idle_closed == 0
    assert stats.max_lifetime_closed == 0


def test_hung_probe_does_not_queue_later_checks(database: Database, monkeypatch) -> None:
    release = threading.Event()
    monkeypatch.setattr(database, "_ping", lambda: release.wait(5))
    monkeypatch.setattr(database, "health_timeout", 0.05)
    try:
        assert database.health()["error"] == "db down: no response within 0.05s"
        hung = database._pending_probe
        assert database.health()["error"] == "db down: no response within 0.05s"
        assert database._pending_probe is hung
    finally:
        release.set()

    database._pending_probe.result(timeout=5)
    monkeypatch.undo()
    assert database.health()["status"] == "up"


def test_pool_exhaustion_check() -> None:
    stats = PoolStats(recycle=-1)
    stats._on_checkout(None, None, None)
    assert stats.is_exhausted(1)
    assert not stats.is_exhausted(2)
