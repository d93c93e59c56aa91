"""
Tests for the TTL disk caches
"""
import asyncio
import os
from datetime import date
from pathlib import Path

import pytest

from conftest import FakeTransport
from edgar_vault.adapters.cache import (
    CompanyDirectoryCache,
    FilingTextCache,
    ManagerDirectoryCache,
    TTLFile,
)
from edgar_vault.core import urls
from edgar_vault.core.domain import Company, Manager
from edgar_vault.core.ports import TEXT_ACCEPT
from edgar_vault.errors import HTTPStatusError

DAY = 24 * 60 * 60

COMPANIES = [
    Company(cik="0000320193", ticker="AAPL", name="Apple Inc."),
    Company(cik="0000789019", ticker="MSFT", name="MICROSOFT CORP"),
]


class Origin:
    """Counts origin fetches and yields to the loop before answering."""

    def __init__(self, value):
        self.value = value
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        return self.value


def master_index(*rows):
    header = "CIK|Company Name|Form Type|Date Filed|Filename\n" + "-" * 80 + "\n"
    return (header + "\n".join(rows)).encode("utf-8")


class TestTTLFile:
    """Test freshness by modification time."""

    def test_missing(self, tmp_path, clock):
        assert TTLFile(tmp_path / "x.json", 10, clock).read_if_fresh() is None

    def test_fresh_then_stale(self, tmp_path, clock):
        file = TTLFile(tmp_path / "sub" / "x.json", 10, clock)

        written_at = file.write(b"data")

        assert written_at == clock.now
        assert file.read_if_fresh() == (b"data", clock.now)
        clock.advance(11)
        assert file.read_if_fresh() is None

    def test_write_leaves_no_temp_files(self, tmp_path, clock):
        file = TTLFile(tmp_path / "x.json", 10, clock)
        file.write(b"one")
        file.write(b"two")

        assert [p.name for p in tmp_path.iterdir()] == ["x.json"]
        assert file.path.read_bytes() == b"two"

    def test_remove_missing_file(self, tmp_path, clock):
        TTLFile(tmp_path / "x.json", 10, clock).remove()

    def test_file_removed_between_stat_and_read(self, tmp_path, clock, monkeypatch):
        """Test a file deleted after the freshness check reads as a miss."""
        file = TTLFile(tmp_path / "x.json", 10, clock)
        file.write(b"data")

        def vanished(self):
            raise FileNotFoundError(self)

        monkeypatch.setattr(Path, "read_bytes", vanished)

        assert file.read_if_fresh() is None


class TestCompanyDirectoryCache:
    """Test company directory caching."""

    def test_one_origin_call_within_ttl(self, tmp_path, clock):
        """Test repeated reads within TTL fetch once, expiry fetches once more."""
        origin = Origin(COMPANIES)
        cache = CompanyDirectoryCache(origin, tmp_path / "companies.json", ttl=7 * DAY, clock=clock)

        async def scenario():
            first = await cache.companies()
            second = await cache.companies()
            clock.advance(7 * DAY + 1)
            third = await cache.companies()
            return first, second, third

        first, second, third = asyncio.run(scenario())

        assert first == second == third == COMPANIES
        assert origin.calls == 2

    def test_disk_hit_from_new_instance(self, tmp_path, clock):
        path = tmp_path / "companies.json"
        asyncio.run(CompanyDirectoryCache(Origin(COMPANIES), path, 7 * DAY, clock).companies())

        clock.advance(DAY)
        origin = Origin([])
        companies = asyncio.run(CompanyDirectoryCache(origin, path, 7 * DAY, clock).companies())

        assert companies == COMPANIES
        assert origin.calls == 0

    def test_stale_disk_refetched(self, tmp_path, clock):
        path = tmp_path / "companies.json"
        asyncio.run(CompanyDirectoryCache(Origin(COMPANIES), path, 7 * DAY, clock).companies())

        clock.advance(8 * DAY)
        origin = Origin(COMPANIES[:1])
        companies = asyncio.run(CompanyDirectoryCache(origin, path, 7 * DAY, clock).companies())

        assert companies == COMPANIES[:1]
        assert origin.calls == 1

    def test_force_refresh(self, tmp_path, clock):
        origin = Origin(COMPANIES)
        cache = CompanyDirectoryCache(origin, tmp_path / "companies.json", 7 * DAY, clock)

        async def scenario():
            await cache.companies()
            await cache.companies(force_refresh=True)

        asyncio.run(scenario())

        assert origin.calls == 2

    def test_concurrent_callers_share_one_fetch(self, tmp_path, clock):
        """Test simultaneous cold reads make a single origin call."""
        origin = Origin(COMPANIES)
        cache = CompanyDirectoryCache(origin, tmp_path / "companies.json", 7 * DAY, clock)

        async def scenario():
            return await asyncio.gather(*(cache.companies() for _ in range(5)))

        results = asyncio.run(scenario())

        assert origin.calls == 1
        assert all(result == COMPANIES for result in results)

    def test_concurrent_callers_share_one_failure(self, tmp_path, clock):
        """Test waiters on a failing fetch receive its error instead of refetching."""
        calls = []

        async def failing():
            calls.append(1)
            await asyncio.sleep(0)
            raise HTTPStatusError(503, url=urls.COMPANY_TICKERS_URL)

        cache = CompanyDirectoryCache(failing, tmp_path / "companies.json", 7 * DAY, clock)

        async def scenario():
            return await asyncio.gather(*(cache.companies() for _ in range(5)), return_exceptions=True)

        results = asyncio.run(scenario())

        assert len(calls) == 1
        assert all(isinstance(result, HTTPStatusError) for result in results)

    def test_retry_after_failure(self, tmp_path, clock):
        """Test a failed refresh is not remembered by later calls."""
        origin = Origin(COMPANIES)
        attempts = []

        async def flaky():
            attempts.append(1)
            if len(attempts) == 1:
                raise HTTPStatusError(503, url=urls.COMPANY_TICKERS_URL)
            return await origin()

        cache = CompanyDirectoryCache(flaky, tmp_path / "companies.json", 7 * DAY, clock)

        async def scenario():
            with pytest.raises(HTTPStatusError):
                await cache.companies()
            return await cache.companies()

        assert asyncio.run(scenario()) == COMPANIES
        assert len(attempts) == 2

    @pytest.mark.parametrize("content", [b"not json", b'[{"unexpected": 1}]'])
    def test_unreadable_file_is_a_miss(self, tmp_path, clock, content):
        path = tmp_path / "companies.json"
        path.write_bytes(content)
        os.utime(path, (clock.now, clock.now))
        origin = Origin(COMPANIES)

        companies = asyncio.run(CompanyDirectoryCache(origin, path, 7 * DAY, clock).companies())

        assert companies == COMPANIES
        assert origin.calls == 1

    def test_origin_error_leaves_cache_empty(self, tmp_path, clock):
        path = tmp_path / "companies.json"

        async def failing():
            raise HTTPStatusError(503, url=urls.COMPANY_TICKERS_URL)

        with pytest.raises(HTTPStatusError):
            asyncio.run(CompanyDirectoryCache(failing, path, 7 * DAY, clock).companies())
        assert not path.exists()


class TestManagerDirectoryCache:
    """Test manager directory caching and quarter fallback."""

    Q2 = urls.master_index_url(2024, 2)
    Q1 = urls.master_index_url(2024, 1)

    def make(self, transport, tmp_path, clock, **kwargs):
        return ManagerDirectoryCache(
            transport,
            tmp_path / "managers.json",
            ttl=30 * DAY,
            clock=clock,
            today=lambda: date(2024, 5, 10),
            **kwargs
        )

    def test_falls_back_to_previous_quarter(self, tmp_path, clock):
        """Test an index without 13F filers steps back one quarter."""
        transport = FakeTransport({
            self.Q2: master_index("320193|Apple Inc.|10-Q|2024-05-03|edgar/data/320193/x.txt"),
            self.Q1: master_index("1067983|BERKSHIRE HATHAWAY INC|13F-HR|2024-02-14|edgar/data/1067983/y.txt"),
        })

        managers = asyncio.run(self.make(transport, tmp_path, clock).managers())

        assert managers == [Manager(cik="0001067983", name="BERKSHIRE HATHAWAY INC")]
        assert transport.calls == [self.Q2, self.Q1]

    def test_master_index_request_options(self, tmp_path, clock):
        transport = FakeTransport({
            self.Q2: master_index("1067983|BERKSHIRE HATHAWAY INC|13F-HR|2024-05-15|edgar/data/1067983/y.txt"),
        })

        asyncio.run(self.make(transport, tmp_path, clock).managers())

        assert transport.kwargs == [{"accept": TEXT_ACCEPT, "timeout": 60.0, "sniff_blocks": False}]

    def test_error_steps_back(self, tmp_path, clock):
        transport = FakeTransport({
            self.Q2: HTTPStatusError(503, url=self.Q2),
            self.Q1: master_index("102909|VANGUARD GROUP INC|13F-HR|2024-02-13|edgar/data/102909/z.txt"),
        })

        managers = asyncio.run(self.make(transport, tmp_path, clock).managers())

        assert [m.name for m in managers] == ["VANGUARD GROUP INC"]

    def test_final_attempt_surfaces_error(self, tmp_path, clock):
        """Test the quarter after the fallback window is tried and its error raised."""
        transport = FakeTransport()

        with pytest.raises(HTTPStatusError):
            asyncio.run(self.make(transport, tmp_path, clock).managers())

        assert transport.calls == [
            self.Q2,
            self.Q1,
            urls.master_index_url(2023, 4),
            urls.master_index_url(2023, 3),
            urls.master_index_url(2023, 2),
        ]

    def test_final_attempt_may_be_empty(self, tmp_path, clock):
        transport = FakeTransport({
            self.Q2: master_index(),
            self.Q1: master_index(),
        })

        managers = asyncio.run(self.make(transport, tmp_path, clock, fallback_quarters=1).managers())

        assert managers == []
        assert transport.calls == [self.Q2, self.Q1]

    def test_cached_within_ttl(self, tmp_path, clock):
        transport = FakeTransport({
            self.Q2: master_index("1067983|BERKSHIRE HATHAWAY INC|13F-HR|2024-05-15|edgar/data/1067983/y.txt"),
        })
        cache = self.make(transport, tmp_path, clock)

        async def scenario():
            await cache.managers()
            clock.advance(29 * DAY)
            await cache.managers()
            clock.advance(2 * DAY)
            await cache.managers()

        asyncio.run(scenario())

        assert transport.calls == [self.Q2, self.Q2]

    def test_disk_round_trip(self, tmp_path, clock):
        transport = FakeTransport({
            self.Q2: master_index("1067983|BERKSHIRE HATHAWAY INC|13F-HR|2024-05-15|edgar/data/1067983/y.txt"),
        })
        asyncio.run(self.make(transport, tmp_path, clock).managers())

        fresh_transport = FakeTransport()
        managers = asyncio.run(self.make(fresh_transport, tmp_path, clock).managers())

        assert managers[0].cik == "0001067983"
        assert fresh_transport.calls == []


class TestFilingTextCache:
    """Test per-filing text caching."""

    CIK = "320193"
    ACC = "0000320193-24-000123"

    def test_key_and_path(self, tmp_path, clock):
        cache = FilingTextCache(tmp_path, 30 * DAY, clock)

        assert cache.cache_key(" 320193 ", self.ACC) == "320193_000032019324000123"
        assert cache.path_for(self.CIK, self.ACC) == tmp_path / "320193_000032019324000123.txt"

    def test_key_sanitized_for_filesystem(self, tmp_path, clock):
        cache = FilingTextCache(tmp_path, 30 * DAY, clock)

        path = cache.path_for("a/b:c", self.ACC)

        assert path.parent == tmp_path
        assert path.name == "a_b_c_000032019324000123.txt"

    def test_fetch_once_then_cached(self, tmp_path, clock):
        cache = FilingTextCache(tmp_path, 30 * DAY, clock)
        origin = Origin("Annual report text")

        async def scenario():
            first = await cache.get_or_fetch(self.CIK, self.ACC, origin)
            second = await cache.get_or_fetch(self.CIK, self.ACC, origin)
            return first, second

        assert asyncio.run(scenario()) == ("Annual report text", "Annual report text")
        assert origin.calls == 1
        assert cache.path_for(self.CIK, self.ACC).read_text() == "Annual report text"

    def test_dashed_and_undashed_share_entry(self, tmp_path, clock):
        cache = FilingTextCache(tmp_path, 30 * DAY, clock)
        origin = Origin("text")

        async def scenario():
            await cache.get_or_fetch(self.CIK, self.ACC, origin)
            await cache.get_or_fetch(self.CIK, "000032019324000123", origin)

        asyncio.run(scenario())

        assert origin.calls == 1

    def test_disk_hit_and_expiry(self, tmp_path, clock):
        asyncio.run(FilingTextCache(tmp_path, 30 * DAY, clock).get_or_fetch(self.CIK, self.ACC, Origin("old")))

        origin = Origin("new")
        assert asyncio.run(FilingTextCache(tmp_path, 30 * DAY, clock).get_or_fetch(self.CIK, self.ACC, origin)) == "old"
        assert origin.calls == 0

        clock.advance(31 * DAY)
        assert asyncio.run(FilingTextCache(tmp_path, 30 * DAY, clock).get_or_fetch(self.CIK, self.ACC, origin)) == "new"
        assert origin.calls == 1

    def test_memory_entry_expires(self, tmp_path, clock):
        cache = FilingTextCache(tmp_path, 30 * DAY, clock)
        origin = Origin("text")

        async def scenario():
            await cache.get_or_fetch(self.CIK, self.ACC, origin)
            clock.advance(31 * DAY)
            await cache.get_or_fetch(self.CIK, self.ACC, origin)

        asyncio.run(scenario())

        assert origin.calls == 2

    def test_force_refresh(self, tmp_path, clock):
        cache = FilingTextCache(tmp_path, 30 * DAY, clock)
        origin = Origin("text")

        async def scenario():
            await cache.get_or_fetch(self.CIK, self.ACC, origin)
            await cache.get_or_fetch(self.CIK, self.ACC, origin, force_refresh=True)

        asyncio.run(scenario())

        assert origin.calls == 2

    def test_invalidate(self, tmp_path, clock):
        """Test invalidation drops both copies and forces the next read to refetch."""
        cache = FilingTextCache(tmp_path, 30 * DAY, clock)
        origin = Origin("text")

        async def scenario():
            await cache.get_or_fetch(self.CIK, self.ACC, origin)
            await cache.invalidate(self.CIK, self.ACC)
            assert not cache.path_for(self.CIK, self.ACC).exists()
            await cache.get_or_fetch(self.CIK, self.ACC, origin)

        asyncio.run(scenario())

        assert origin.calls == 2

    def test_invalidate_unknown_key(self, tmp_path, clock):
        asyncio.run(FilingTextCache(tmp_path, 30 * DAY, clock).invalidate(self.CIK, self.ACC))

    def test_concurrent_callers_share_one_fetch(self, tmp_path, clock):
        cache = FilingTextCache(tmp_path, 30 * DAY, clock)
        origin = Origin("text")

        async def scenario():
            return await asyncio.gather(*(
                cache.get_or_fetch(self.CIK, self.ACC, origin) for _ in range(4)
            ))

        assert asyncio.run(scenario()) == ["text"] * 4
        assert origin.calls == 1

    def test_fetcher_error_propagates(self, tmp_path, clock):
        cache = FilingTextCache(tmp_path, 30 * DAY, clock)

        async def failing():
            raise HTTPStatusError(404)

        with pytest.raises(HTTPStatusError):
            asyncio.run(cache.get_or_fetch(self.CIK, self.ACC, failing))
        assert not cache.path_for(self.CIK, self.ACC).exists()

    def test_concurrent_callers_share_one_failure(self, tmp_path, clock):
        """Test waiters on a failing derivation get its error without deriving again."""
        cache = FilingTextCache(tmp_path, 30 * DAY, clock)
        calls = []

        async def failing():
            calls.append(1)
            await asyncio.sleep(0)
            raise HTTPStatusError(503)

        async def scenario():
            return await asyncio.gather(
                *(cache.get_or_fetch(self.CIK, self.ACC, failing) for _ in range(5)),
                return_exceptions=True,
            )

        results = asyncio.run(scenario())

        assert len(calls) == 1
        assert all(isinstance(result, HTTPStatusError) for result in results)

    def test_different_keys_fetch_separately(self, tmp_path, clock):
        cache = FilingTextCache(tmp_path, 30 * DAY, clock)
        origin = Origin("text")

        async def scenario():
            await asyncio.gather(
                cache.get_or_fetch(self.CIK, self.ACC, origin),
                cache.get_or_fetch(self.CIK, "0000320193-24-000999", origin),
            )

        asyncio.run(scenario())

        assert origin.calls == 2

    def test_invalidate_waits_for_inflight_derivation(self, tmp_path, clock):
        """Test invalidation during a derivation leaves no file behind."""
        cache = FilingTextCache(tmp_path, 30 * DAY, clock)
        origin = Origin("text")

        async def scenario():
            pending = asyncio.ensure_future(cache.get_or_fetch(self.CIK, self.ACC, origin))
            await asyncio.sleep(0)
            await cache.invalidate(self.CIK, self.ACC)
            await pending

        asyncio.run(scenario())

        assert origin.calls == 1
        assert not cache.path_for(self.CIK, self.ACC).exists()
