"""
Dependency Injection Container

Wires together the hexagonal architecture by creating and injecting dependencies.
"""
from pathlib import Path
from typing import Optional

from .adapters import (
    CompanyDirectoryCache,
    FilingTextCache,
    HttpTransport,
    ManagerDirectoryCache,
    SoupTextExtractor,
)
from .config import Settings, get_settings
from .core import (
    FetchDocumentService,
    FilingIndexResolver,
    FilingTextService,
    ListCompaniesService,
    ListFilingsService,
    ListManagersService,
    ResolveDocumentService,
    ThirteenFHoldingsService,
    Transport,
)


class Container:
    """Dependency injection container for the application"""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        cache_dir: Optional[str | Path] = None,
        user_agent: Optional[str] = None,
        transport: Optional[Transport] = None
    ):
        settings = settings or get_settings()
        overrides = {}
        if cache_dir is not None:
            overrides["cache_dir"] = Path(cache_dir)
        if user_agent is not None:
            overrides["user_agent"] = user_agent
        self.settings = settings.model_copy(update=overrides) if overrides else settings
        cache_root = Path(self.settings.cache_dir)

        # Adapters (infrastructure)
        self.transport = transport or HttpTransport(
            self.settings.user_agent,
            timeout=self.settings.timeout,
            retry_backoff=self.settings.retry_backoff,
            max_retries=self.settings.max_retries,
        )
        self.resolver = FilingIndexResolver(self.transport, SoupTextExtractor())

        self.company_cache = CompanyDirectoryCache(
            self.resolver.fetch_companies,
            cache_root / self.settings.company_cache_file,
            ttl=self.settings.company_ttl,
        )
        self.manager_cache = ManagerDirectoryCache(
            self.transport,
            cache_root / self.settings.manager_cache_file,
            ttl=self.settings.manager_ttl,
            fallback_quarters=self.settings.fallback_quarters,
            timeout=self.settings.master_index_timeout,
        )
        self.text_cache = FilingTextCache(
            cache_root / self.settings.filing_text_cache_dir,
            ttl=self.settings.filing_text_ttl,
        )

        # Services (use cases)
        self.list_companies = ListCompaniesService(self.company_cache)
        self.list_filings = ListFilingsService(self.resolver)
        self.resolve_document = ResolveDocumentService(self.resolver)
        self.fetch_document = FetchDocumentService(self.resolver)
        self.get_13f_holdings = ThirteenFHoldingsService(self.resolver)
        self.list_managers = ListManagersService(self.manager_cache)
        self.filing_text = FilingTextService(self.resolver, self.text_cache)

    async def aclose(self):
        close = getattr(self.transport, "aclose", None)
        if close is not None:
            await close()
