"""Database setup for SQLAlchemy sessions, engine, and pool health."""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeout
from contextlib import contextmanager
from functools import lru_cache
from typing import Any, Dict, Iterator

from fastapi import Request
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import Settings, get_settings

LOGGER = logging.getLogger(__name__)

Base = declarative_base()

HEAVY_LOAD_RATIO = 0.8
HIGH_WAIT_COUNT = 1000


class PoolStats:
    """Connection counters fed by SQLAlchemy pool events."""

    def __init__(self, recycle: int) -> None:
        self._lock = threading.Lock()
        self._recycle = recycle
        self.opened = 0
        self.closed = 0
        self.checked_out = 0
        self.checked_in = 0
        self.wait_count = 0
        self.wait_duration = 0.0
        self.max_idle_closed = 0
        self.max_lifetime_closed = 0
        self.invalidated = 0
        self._invalidated_ids: set[int] = set()

    def attach(self, engine) -> None:
        event.listen(engine, "connect", self._on_connect)
        event.listen(engine, "checkout", self._on_checkout)
        event.listen(engine, "checkin", self._on_checkin)
        event.listen(engine, "close", self._on_close)
        event.listen(engine, "invalidate", self._on_invalidate)
        event.listen(engine, "soft_invalidate", self._on_invalidate)

    def _on_connect(self, dbapi_connection, connection_record) -> None:
        with self._lock:
            self.opened += 1

    def _on_checkout(self, dbapi_connection, connection_record, connection_proxy) -> None:
        with self._lock:
            self.checked_out += 1

    def _on_checkin(self, dbapi_connection, connection_record) -> None:
        with self._lock:
            self.checked_in += 1

    def _on_invalidate(self, dbapi_connection, connection_record, exception) -> None:
        with self._lock:
            self.invalidated += 1
            if dbapi_connection is not None:
                self._invalidated_ids.add(id(dbapi_connection))

    def _on_close(self, dbapi_connection, connection_record) -> None:
        started = getattr(connection_record, "starttime", None)
        expired = (
            self._recycle > -1 and started is not None and time.time() - started > self._recycle
        )
        with self._lock:
            self.closed += 1
            # Invalidated connections were broken, not retired by pool policy
            if id(dbapi_connection) in self._invalidated_ids:
                self._invalidated_ids.discard(id(dbapi_connection))
            elif expired:
                self.max_lifetime_closed += 1
            else:
                self.max_idle_closed += 1

    def is_exhausted(self, capacity: int) -> bool:
        with self._lock:
            return self.in_use >= capacity

    def record_wait(self, elapsed: float) -> None:
        with self._lock:
            self.wait_count += 1
            self.wait_duration += elapsed

    @property
    def open_connections(self) -> int:
        return max(self.opened - self.closed, 0)

    @property
    def in_use(self) -> int:
        return max(self.checked_out - self.checked_in, 0)

    @property
    def idle(self) -> int:
        return max(self.open_connections - self.in_use, 0)

    def snapshot(self) -> Dict[str, str]:
        with self._lock:
            return {
                "open_connections": str(self.open_connections),
                "in_use": str(self.in_use),
                "idle": str(self.idle),
                "wait_count": str(self.wait_count),
                "wait_duration": f"{self.wait_duration:.3f}s",
                "max_idle_closed": str(self.max_idle_closed),
                "max_lifetime_closed": str(self.max_lifetime_closed),
            }


class Database:
    """Owns the engine, its bounded connection pool, and the session factory."""

    def __init__(
        self,
        url: str,
        *,
        pool_size: int = 50,
        pool_recycle: int = -1,
        pool_timeout: float = 30.0,
        health_timeout: float = 1.0,
        **engine_options: Any,
    ) -> None:
        options: Dict[str, Any] = {"pool_pre_ping": True, "future": True}
        if "poolclass" not in engine_options:
            options.update(
                pool_size=pool_size,
                max_overflow=0,
                pool_recycle=pool_recycle,
                pool_timeout=pool_timeout,
            )
        options.update(engine_options)

        self.url = make_url(url)
        self.capacity = pool_size
        self.health_timeout = health_timeout
        self.engine = create_engine(url, **options)
        self.stats = PoolStats(recycle=pool_recycle)
        self.stats.attach(self.engine)
        self.SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, expire_on_commit=False, bind=self.engine, future=True
        )
        self._probe = ThreadPoolExecutor(max_workers=1, thread_name_prefix="db-health")
        self._pending_probe: Future | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        url = settings.sqlalchemy_url()
        extra: Dict[str, Any] = {}
        if url.startswith("sqlite"):
            extra = {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
        return cls(
            url,
            pool_size=settings.DB_POOL_SIZE,
            pool_recycle=settings.DB_POOL_RECYCLE,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            health_timeout=settings.DB_HEALTH_TIMEOUT,
            **extra,
        )

    @property
    def name(self) -> str:
        return self.url.database or ""

    def init_schema(self) -> None:
        """Create the tables if they do not exist yet."""
        try:
            Base.metadata.create_all(bind=self.engine)
        except Exception:
            LOGGER.critical("Failed to create database tables on %s", self.url.render_as_string(), exc_info=True)
            raise
        LOGGER.info("Database tables created successfully")

    @contextmanager
    def session(self) -> Iterator[Session]:
        db = self.SessionLocal()
        try:
            exhausted = self.stats.is_exhausted(self.capacity)
            start = time.perf_counter()
            db.connection()
            if exhausted:
                self.stats.record_wait(time.perf_counter() - start)
            yield db
        finally:
            db.close()

    def _ping(self) -> None:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def health(self) -> Dict[str, str]:
        stats: Dict[str, str] = {}
        # Join an in-flight ping rather than queueing a new one behind it
        probe = self._pending_probe
        if probe is None or probe.done():
            probe = self._pending_probe = self._probe.submit(self._ping)
        try:
            probe.result(timeout=self.health_timeout)
        except FutureTimeout:
            stats["status"] = "down"
            stats["error"] = f"db down: no response within {self.health_timeout}s"
            return stats
        except Exception as exc:  # noqa: BLE001
            stats["status"] = "down"
            stats["error"] = f"db down: {exc}"
            return stats

        stats["status"] = "up"
        stats["message"] = "It's healthy"
        stats.update(self.stats.snapshot())

        open_connections = int(stats["open_connections"])
        if open_connections > self.capacity * HEAVY_LOAD_RATIO:
            stats["message"] = "The database is experiencing heavy load."
        if int(stats["wait_count"]) > HIGH_WAIT_COUNT:
            stats["message"] = "The database has a high number of wait events, indicating potential bottlenecks."
        if int(stats["max_idle_closed"]) > open_connections // 2:
            stats["message"] = (
                "Many idle connections are being closed, consider revising the connection pool settings."
            )
        if int(stats["max_lifetime_closed"]) > open_connections // 2:
            stats["message"] = (
                "Many connections are being closed due to max lifetime, consider increasing max lifetime "
                "or revising the connection usage pattern."
            )
        return stats

    def close(self) -> None:
        LOGGER.info("Disconnected from database: %s", self.name)
        self._probe.shutdown(wait=False)
        self.engine.dispose()


@lru_cache()
def get_database() -> Database:
    """Return the process-wide Database, building it on first use."""
    return Database.from_settings(get_settings())


def get_db(request: Request) -> Iterator[Session]:
    database: Database = request.app.state.database
    with database.session() as db:
        yield db
