"""
Disk Cache Adapters

Time-to-live caches for the expensive bulk downloads: the company directory,
the 13F manager directory and derived filing text.

A refresh runs as one asyncio task per cache entry. Callers arriving while it
is in flight await that same task and receive its value or its exception, so
a failing origin is hit once, not once per waiter. Freshness on disk is the
file's modification time, writes replace the whole file atomically.
"""
import asyncio
import json
import logging
import os
import tempfile
import time
from dataclasses import asdict
from datetime import date
from pathlib import Path
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from ..core import urls
from ..core.domain import Company, Manager
from ..core.master_index import current_quarter, parse_managers, previous_quarter
from ..core.ports import TEXT_ACCEPT, Transport

logger = logging.getLogger(__name__)

T = TypeVar("T")
Clock = Callable[[], float]


class TTLFile:
    """One cache file judged fresh by its modification time"""

    def __init__(self, path: str | Path, ttl: float, clock: Clock = time.time):
        self.path = Path(path)
        self.ttl = ttl
        self.clock = clock

    def read_if_fresh(self) -> Optional[tuple[bytes, float]]:
        """Return (content, mtime) if the file exists and is within TTL"""
        try:
            mtime = self.path.stat().st_mtime
        except FileNotFoundError:
            return None
        if self.clock() - mtime > self.ttl:
            return None
        try:
            return self.path.read_bytes(), mtime
        except FileNotFoundError:
            # Removed by another process after the stat
            return None

    def write(self, data: bytes) -> float:
        """Replace the file atomically, return the refresh timestamp"""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        now = self.clock()
        os.utime(self.path, (now, now))
        return now

    def remove(self) -> None:
        self.path.unlink(missing_ok=True)


class DiskValueCache(Generic[T]):
    """Single-value TTL cache held in memory and mirrored to one JSON file"""

    def __init__(
        self,
        path: str | Path,
        ttl: float,
        encode: Callable[[T], bytes],
        decode: Callable[[bytes], T],
        clock: Clock = time.time
    ):
        self.file = TTLFile(path, ttl, clock)
        self._encode = encode
        self._decode = decode
        self._value: Optional[T] = None
        self._refreshed_at = 0.0
        self._inflight: Optional[asyncio.Task] = None

    @property
    def path(self) -> Path:
        return self.file.path

    def _memory_is_fresh(self) -> bool:
        return self._value is not None and self.file.clock() - self._refreshed_at <= self.file.ttl

    def _load(self) -> Optional[tuple[T, float]]:
        cached = self.file.read_if_fresh()
        if cached is None:
            return None
        data, mtime = cached
        try:
            return self._decode(data), mtime
        except (ValueError, TypeError, KeyError) as exc:
            logger.warning("Ignoring unreadable cache file %s: %s", self.path, exc)
            return None

    def _clear_inflight(self, task: asyncio.Task) -> None:
        if self._inflight is task:
            self._inflight = None

    async def get(self, origin: Callable[[], Awaitable[T]], force_refresh: bool = False) -> T:
        """
        Return the cached value, refreshing it when stale or forced.

        A call made while a refresh is in flight, forced or not, joins that
        refresh instead of starting another.
        """
        if not force_refresh and self._memory_is_fresh():
            return self._value

        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._refresh(origin, force_refresh))
            self._inflight.add_done_callback(self._clear_inflight)
        return await asyncio.shield(self._inflight)

    async def _refresh(self, origin: Callable[[], Awaitable[T]], force_refresh: bool) -> T:
        if not force_refresh:
            loaded = await asyncio.to_thread(self._load)
            if loaded is not None:
                logger.debug("Cache hit on disk: %s", self.path)
                self._value, self._refreshed_at = loaded
                return self._value

        logger.info("Refreshing %s from origin", self.path.name)
        fresh = await origin()
        self._refreshed_at = await asyncio.to_thread(self.file.write, self._encode(fresh))
        self._value = fresh
        return fresh


def _encode_rows(rows: list) -> bytes:
    return json.dumps([asdict(row) for row in rows]).encode("utf-8")


def _decoder(model) -> Callable[[bytes], list]:
    def decode(data: bytes) -> list:
        return [model(**row) for row in json.loads(data)]
    return decode


class CompanyDirectoryCache:
    """Caches the SEC ticker -> CIK company directory"""

    def __init__(
        self,
        fetch_companies: Callable[[], Awaitable[list[Company]]],
        path: str | Path,
        ttl: float,
        clock: Clock = time.time
    ):
        self._fetch_companies = fetch_companies
        self._cache: DiskValueCache[list[Company]] = DiskValueCache(
            path, ttl, _encode_rows, _decoder(Company), clock
        )

    @property
    def path(self) -> Path:
        return self._cache.path

    async def companies(self, force_refresh: bool = False) -> list[Company]:
        return await self._cache.get(self._fetch_companies, force_refresh)


class ManagerDirectoryCache:
    """
    Caches the 13F manager directory built from a quarterly master index.

    The current quarter's index is often still empty of 13F filers (they file
    up to 45 days after quarter end), so earlier quarters are tried in turn.
    """

    def __init__(
        self,
        transport: Transport,
        path: str | Path,
        ttl: float,
        fallback_quarters: int = 4,
        timeout: Optional[float] = 60.0,
        clock: Clock = time.time,
        today: Callable[[], date] = date.today
    ):
        self.transport = transport
        self.fallback_quarters = fallback_quarters
        self.timeout = timeout
        self._today = today
        self._cache: DiskValueCache[list[Manager]] = DiskValueCache(
            path, ttl, _encode_rows, _decoder(Manager), clock
        )

    @property
    def path(self) -> Path:
        return self._cache.path

    async def managers(self, force_refresh: bool = False) -> list[Manager]:
        return await self._cache.get(self._fetch_latest_quarter_managers, force_refresh)

    async def _fetch_quarter(self, year: int, quarter: int) -> list[Manager]:
        data = await self.transport.fetch(
            urls.master_index_url(year, quarter),
            accept=TEXT_ACCEPT,
            timeout=self.timeout,
            sniff_blocks=False,
        )
        return parse_managers(data)

    async def _fetch_latest_quarter_managers(self) -> list[Manager]:
        year, quarter = current_quarter(self._today())

        for _ in range(max(1, self.fallback_quarters)):
            try:
                managers = await self._fetch_quarter(year, quarter)
            except Exception as exc:
                logger.info("Master index %dQ%d unavailable: %s", year, quarter, exc)
            else:
                if managers:
                    logger.info("Found %d 13F managers in %dQ%d", len(managers), year, quarter)
                    return managers
                logger.info("No 13F managers in %dQ%d, trying previous quarter", year, quarter)
            year, quarter = previous_quarter(year, quarter)

        # Last attempt surfaces its own error or result
        return await self._fetch_quarter(year, quarter)


class FilingTextCache:
    """Disk-backed cache of derived filing plain text, keyed by CIK + accession number"""

    def __init__(self, directory: str | Path, ttl: float, clock: Clock = time.time):
        self.directory = Path(directory)
        self.ttl = ttl
        self.clock = clock
        self._memory: dict[str, tuple[str, float]] = {}
        self._inflight: dict[str, asyncio.Task] = {}

    @staticmethod
    def cache_key(cik: str, accession_number: str) -> str:
        return f"{cik.strip()}_{urls.strip_accession_dashes(accession_number)}"

    def _file(self, key: str) -> TTLFile:
        safe = key.replace("/", "_").replace(":", "_")
        return TTLFile(self.directory / f"{safe}.txt", self.ttl, self.clock)

    def path_for(self, cik: str, accession_number: str) -> Path:
        return self._file(self.cache_key(cik, accession_number)).path

    async def get_or_fetch(
        self,
        cik: str,
        accession_number: str,
        fetcher: Callable[[], Awaitable[str]],
        force_refresh: bool = False
    ) -> str:
        key = self.cache_key(cik, accession_number)

        if not force_refresh and key in self._memory:
            text, refreshed_at = self._memory[key]
            if self.clock() - refreshed_at <= self.ttl:
                return text

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._refresh(key, fetcher, force_refresh))
            self._inflight[key] = task
            task.add_done_callback(lambda done: self._clear_inflight(key, done))
        return await asyncio.shield(task)

    def _clear_inflight(self, key: str, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]

    async def _refresh(self, key: str, fetcher: Callable[[], Awaitable[str]], force_refresh: bool) -> str:
        file = self._file(key)

        if not force_refresh:
            cached = await asyncio.to_thread(file.read_if_fresh)
            if cached is not None:
                data, mtime = cached
                text = data.decode("utf-8", errors="replace")
                self._memory[key] = (text, mtime)
                return text

        logger.info("Deriving filing text for %s", key)
        text = await fetcher()
        refreshed_at = await asyncio.to_thread(file.write, text.encode("utf-8"))
        self._memory[key] = (text, refreshed_at)
        return text

    async def invalidate(self, cik: str, accession_number: str) -> None:
        key = self.cache_key(cik, accession_number)
        task = self._inflight.get(key)
        if task is not None:
            # Let an in-flight derivation finish so it cannot rewrite the file afterwards
            await asyncio.wait([task])
        self._memory.pop(key, None)
        await asyncio.to_thread(self._file(key).remove)
        logger.info("Invalidated filing text for %s", key)
