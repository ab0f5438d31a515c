import asyncio
import sqlite3
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, List, Optional, Union

import duckdb

from tsdocref.helpers import file_mtime_ns
from tsdocref.logger import logger
from tsdocref.models import ModuleTypes, dump_modules, load_modules


class CacheBackend(ABC):
    """
    Stores one serialised payload per watched file, tagged with the file's
    mtime. A payload stored without an mtime is a placeholder and never
    served.
    """

    @abstractmethod
    def get(self, key: str, mtime_ns: int) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, mtime_ns: int, payload: str) -> None:
        pass

    @abstractmethod
    def reset(self, key: str, payload: str) -> None:
        """Replace the entry for *key* with an unservable placeholder."""
        pass

    def flush(self) -> None:
        """Flushes any pending writes to the cache."""
        pass

    def close(self) -> None:
        """Closes the cache and flushes any pending writes."""
        self.flush()


class MemoryCacheBackend(CacheBackend):
    def __init__(self) -> None:
        self._entries: dict[str, tuple[Optional[int], str]] = {}
        self._lock = threading.Lock()

    def get(self, key: str, mtime_ns: int) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(key)
        if entry is None or entry[0] != mtime_ns:
            return None
        return entry[1]

    def set(self, key: str, mtime_ns: int, payload: str) -> None:
        with self._lock:
            self._entries[key] = (mtime_ns, payload)

    def reset(self, key: str, payload: str) -> None:
        with self._lock:
            self._entries[key] = (None, payload)


class BaseSQLCacheBackend(CacheBackend):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._conn: Any = None

    def get(self, key: str, mtime_ns: int) -> Optional[str]:
        with self._lock:
            return self._fetch_payload_from_db(key, mtime_ns)

    def set(self, key: str, mtime_ns: int, payload: str) -> None:
        with self._lock:
            self._upsert_payload_in_db(key, mtime_ns, payload)

    def reset(self, key: str, payload: str) -> None:
        with self._lock:
            self._upsert_payload_in_db(key, None, payload)

    def close(self) -> None:
        super().close()
        if self._conn:
            self._conn.close()
            self._conn = None

    @abstractmethod
    def _fetch_payload_from_db(self, key: str, mtime_ns: int) -> Optional[str]:
        pass

    @abstractmethod
    def _upsert_payload_in_db(
        self, key: str, mtime_ns: Optional[int], payload: str
    ) -> None:
        pass


# ---------- DuckDB -------------------------------------------------
class DuckDBCacheBackend(BaseSQLCacheBackend):
    def __init__(self, path: str | None):
        super().__init__()
        self._conn = duckdb.connect(path or ":memory:")
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS type_spec_cache (
                path            TEXT PRIMARY KEY,
                mtime_ns        BIGINT,
                payload         TEXT NOT NULL,
                updated_at      TIMESTAMP WITH TIME ZONE
            );
        """
        )

    def _fetch_payload_from_db(self, key: str, mtime_ns: int) -> Optional[str]:
        row = (
            self._conn.cursor()
            .execute(
                "SELECT payload FROM type_spec_cache WHERE path=? AND mtime_ns=?",
                [key, mtime_ns],
            )
            .fetchone()
        )
        return row[0] if row else None

    def _upsert_payload_in_db(
        self, key: str, mtime_ns: Optional[int], payload: str
    ) -> None:
        self._conn.cursor().execute(
            "INSERT OR REPLACE INTO type_spec_cache(path, mtime_ns, payload, updated_at) "
            "VALUES (?,?,?, NOW())",
            [key, mtime_ns, payload],
        )


# ---------- SQLite -------------------------------------------------
class SQLiteCacheBackend(BaseSQLCacheBackend):
    def __init__(self, path: str | None):
        super().__init__()
        self._conn = sqlite3.connect(path or ":memory:", check_same_thread=False)
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS type_spec_cache (
                path TEXT PRIMARY KEY,
                mtime_ns INTEGER,
                payload TEXT NOT NULL,
                updated_at DATETIME
            );
        """
        )
        self._conn.commit()

    def _fetch_payload_from_db(self, key: str, mtime_ns: int) -> Optional[str]:
        cur = self._conn.execute(
            "SELECT payload FROM type_spec_cache WHERE path=? AND mtime_ns=?",
            (key, mtime_ns),
        )
        row = cur.fetchone()
        return row[0] if row else None

    def _upsert_payload_in_db(
        self, key: str, mtime_ns: Optional[int], payload: str
    ) -> None:
        self._conn.execute(
            "INSERT OR REPLACE INTO type_spec_cache(path, mtime_ns, payload, updated_at) "
            "VALUES (?,?,?, CURRENT_TIMESTAMP)",
            (key, mtime_ns, payload),
        )
        self._conn.commit()


def build_cache_backend(name: str | None, path: str | None = None) -> CacheBackend:
    if name is None or name == "memory":
        return MemoryCacheBackend()
    backend_map = {
        "duckdb": DuckDBCacheBackend,
        "sqlite": SQLiteCacheBackend,
    }
    if name not in backend_map:
        raise ValueError(f"Unknown cache backend: {name}")
    return backend_map[name](path)


# ---------- File-busted cache ---------------------------------------
class ResolutionCache:
    """
    Memoises a zero-argument resolution function until the watched file's
    modification time changes.

    Concurrent awaiters share one in-flight computation. Freshness is keyed
    on ``st_mtime_ns`` only, so rewriting the file with identical content
    still forces a recomputation.
    """

    def __init__(
        self,
        fn: Callable[[], List[ModuleTypes]],
        path: Union[str, Path],
        fallback: Callable[[str], str],
        backend: Optional[CacheBackend] = None,
    ):
        self._fn = fn
        self._path = str(path)
        self._fallback = fallback
        self._backend = backend if backend is not None else MemoryCacheBackend()

        self._value: Optional[List[ModuleTypes]] = None
        self._value_mtime_ns: Optional[int] = None
        self._inflight: Optional["asyncio.Future[List[ModuleTypes]]"] = None
        self._inflight_mtime_ns: Optional[int] = None
        # newest mtime a refresh was started for; older refreshes never commit
        self._latest_mtime_ns: Optional[int] = None

    @property
    def backend(self) -> CacheBackend:
        return self._backend

    async def __call__(self) -> List[ModuleTypes]:
        mtime_ns = file_mtime_ns(self._path)

        if self._value is not None and self._value_mtime_ns == mtime_ns:
            logger.debug("Type spec cache hit", path=self._path)
            return self._value

        task = self._inflight
        if task is None or self._inflight_mtime_ns != mtime_ns:
            task = asyncio.ensure_future(self._refresh(mtime_ns))
            task.add_done_callback(self._clear_inflight)
            self._inflight = task
            self._inflight_mtime_ns = mtime_ns
            self._latest_mtime_ns = mtime_ns

        return await asyncio.shield(task)

    def invalidate(self) -> None:
        """Drop the in-process value; the next call consults the backend again."""
        self._value = None
        self._value_mtime_ns = None

    async def _refresh(self, mtime_ns: int) -> List[ModuleTypes]:
        payload = self._backend.get(self._path, mtime_ns)
        if payload is not None:
            logger.debug("Type spec loaded from cache backend", path=self._path)
            modules = load_modules(payload)
        else:
            logger.info(
                "Type spec cache busted, recomputing",
                path=self._path,
                mtime_ns=mtime_ns,
            )
            self._backend.reset(self._path, self._fallback(self._path))
            modules = await asyncio.to_thread(self._fn)
            if self._is_stale(mtime_ns):
                logger.debug(
                    "Superseded type spec resolution discarded",
                    path=self._path,
                    mtime_ns=mtime_ns,
                )
                return modules
            self._backend.set(self._path, mtime_ns, dump_modules(modules))

        if self._is_stale(mtime_ns):
            return modules
        self._value = modules
        self._value_mtime_ns = mtime_ns
        return modules

    def _is_stale(self, mtime_ns: int) -> bool:
        return self._latest_mtime_ns is not None and self._latest_mtime_ns != mtime_ns

    def _clear_inflight(self, task: "asyncio.Future[List[ModuleTypes]]") -> None:
        if self._inflight is task:
            self._inflight = None
            self._inflight_mtime_ns = None


def cache_full_process(
    fn: Callable[[], List[ModuleTypes]],
    path: Union[str, Path],
    fallback: Callable[[str], str],
    backend: Optional[CacheBackend] = None,
) -> ResolutionCache:
    return ResolutionCache(fn, path, fallback, backend)
