"""
Application Services - Use cases that orchestrate domain logic

These are the entry points to the core. They coordinate between
the resolver and the caches, but contain no infrastructure concerns.
"""
from typing import Iterable, Optional, Protocol

from ..errors import MissingCIKError
from .domain import Company, Filing, Holding, Manager
from .resolver import FilingIndexResolver


class CompanyDirectory(Protocol):
    async def companies(self, force_refresh: bool = False) -> list[Company]: ...


class ManagerDirectory(Protocol):
    async def managers(self, force_refresh: bool = False) -> list[Manager]: ...


class TextCache(Protocol):
    async def get_or_fetch(self, cik, accession_number, fetcher, force_refresh=False) -> str: ...

    async def invalidate(self, cik: str, accession_number: str) -> None: ...


def _require_cik(cik: Optional[str]) -> str:
    if not cik or not cik.strip():
        raise MissingCIKError()
    return cik.strip()


def search_companies(companies: list[Company], query: str, limit: Optional[int] = None) -> list[Company]:
    """
    Filter a company list the way the search box does.

    Exact ticker matches first, then ticker prefixes, then name substrings.
    """
    needle = query.strip().casefold()
    if not needle:
        return companies[:limit] if limit else list(companies)

    exact, prefix, by_name = [], [], []
    for company in companies:
        ticker = company.ticker.casefold()
        if ticker == needle:
            exact.append(company)
        elif ticker.startswith(needle):
            prefix.append(company)
        elif needle in company.name.casefold():
            by_name.append(company)

    matches = exact + prefix + by_name
    return matches[:limit] if limit else matches


class ListCompaniesService:
    """Use case: List (and optionally search) companies"""

    def __init__(self, directory: CompanyDirectory):
        self.directory = directory

    async def execute(
        self,
        query: Optional[str] = None,
        limit: Optional[int] = None,
        force_refresh: bool = False
    ) -> list[Company]:
        companies = await self.directory.companies(force_refresh=force_refresh)
        if query:
            return search_companies(companies, query, limit)
        return companies[:limit] if limit else companies


class ListFilingsService:
    """Use case: List a filer's filings, newest first"""

    def __init__(self, resolver: FilingIndexResolver):
        self.resolver = resolver

    async def execute(self, cik: str, forms: Iterable[str] = ()) -> list[Filing]:
        return await self.resolver.list_recent_filings(_require_cik(cik), forms)


class ResolveDocumentService:
    """Use case: Pick the HTML document to open for a filing"""

    def __init__(self, resolver: FilingIndexResolver):
        self.resolver = resolver

    async def execute(
        self,
        cik: str,
        accession_number: str,
        primary_document: Optional[str] = None
    ) -> str:
        return await self.resolver.best_document_url(
            _require_cik(cik), accession_number, primary_document
        )


class FetchDocumentService:
    """Use case: Download one document of a filing"""

    def __init__(self, resolver: FilingIndexResolver):
        self.resolver = resolver

    async def execute(self, cik: str, accession_number: str, filename: str) -> bytes:
        return await self.resolver.fetch_document(_require_cik(cik), accession_number, filename)


class ThirteenFHoldingsService:
    """Use case: Get 13F-HR institutional holdings for one filing"""

    def __init__(self, resolver: FilingIndexResolver):
        self.resolver = resolver

    async def execute(
        self,
        cik: str,
        accession_number: str,
        top_n: Optional[int] = None
    ) -> list[Holding]:
        """
        Holdings of the filing, optionally only the top N by reported value.

        The parser keeps document order; sorting is only applied with top_n.
        """
        holdings = await self.resolver.fetch_13f_holdings(_require_cik(cik), accession_number)
        if top_n:
            holdings = sorted(holdings, key=lambda h: h.value_usd_thousands or 0, reverse=True)[:top_n]
        return holdings


class ListManagersService:
    """Use case: List 13F managers from the latest populated quarter"""

    def __init__(self, directory: ManagerDirectory):
        self.directory = directory

    async def execute(self, query: Optional[str] = None, force_refresh: bool = False) -> list[Manager]:
        managers = await self.directory.managers(force_refresh=force_refresh)
        if not query:
            return managers
        needle = query.strip().casefold()
        return [m for m in managers if needle in m.name.casefold() or needle in m.cik]


class FilingTextService:
    """Use case: Plain text of a filing, derived once and cached"""

    def __init__(self, resolver: FilingIndexResolver, cache: TextCache):
        self.resolver = resolver
        self.cache = cache

    async def execute(
        self,
        cik: str,
        accession_number: str,
        primary_document: Optional[str] = None,
        force_refresh: bool = False
    ) -> str:
        cik = _require_cik(cik)

        async def derive() -> str:
            return await self.resolver.fetch_full_text(cik, accession_number, primary_document)

        return await self.cache.get_or_fetch(cik, accession_number, derive, force_refresh=force_refresh)

    async def invalidate(self, cik: str, accession_number: str) -> None:
        await self.cache.invalidate(_require_cik(cik), accession_number)
