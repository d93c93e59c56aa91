"""
MCP Tool Handlers

Shared handlers for MCP tools that use the hexagonal core.
Every handler returns a JSON-friendly dict with a "success" flag.
"""
import asyncio
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, Optional

from ...container import Container
from ...core import urls
from ...core.domain import Company, Filing, Holding, Manager
from ...errors import EdgarError

logger = logging.getLogger(__name__)


def _error(action: str, exc: Exception) -> dict[str, Any]:
    logger.warning("%s failed: %s", action, exc)
    detail = exc.hint if isinstance(exc, EdgarError) else str(exc)
    return {
        "success": False,
        "error": f"{action} failed: {detail}"
    }


def company_to_dict(company: Company) -> dict[str, Any]:
    return asdict(company)


def manager_to_dict(manager: Manager) -> dict[str, Any]:
    return asdict(manager)


def filing_to_dict(filing: Filing) -> dict[str, Any]:
    return {
        "accession_number": filing.accession_number,
        "form": filing.form,
        "filing_date": filing.filing_date_string,
        "report_date": filing.report_date.isoformat() if filing.report_date else None,
        "primary_document": filing.primary_document,
        "items": filing.items,
    }


def holding_to_dict(holding: Holding) -> dict[str, Any]:
    return {"id": holding.id, **asdict(holding)}


def _write_bytes(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


class MCPHandlers:
    """Handlers for MCP tools using dependency injection"""

    def __init__(self, container: Container):
        self.container = container

    @property
    def documents_dir(self) -> Path:
        return Path(self.container.settings.cache_dir) / "documents"

    async def list_companies(
        self,
        query: Optional[str] = None,
        limit: int = 25,
        force_refresh: bool = False
    ) -> dict[str, Any]:
        """Search the company directory"""
        try:
            companies = await self.container.list_companies.execute(
                query=query, limit=limit, force_refresh=force_refresh
            )
            return {
                "success": True,
                "companies": [company_to_dict(c) for c in companies],
                "count": len(companies)
            }
        except Exception as e:
            return _error("List companies", e)

    async def list_filings(
        self,
        cik: str,
        forms: Optional[list[str]] = None,
        start: int = 0,
        max: int = 15
    ) -> dict[str, Any]:
        """List a filer's filings, newest first"""
        try:
            filings = await self.container.list_filings.execute(cik, forms or ())
            page = filings[start:start + max]
            return {
                "success": True,
                "cik": urls.pad_cik(cik),
                "filings": [filing_to_dict(f) for f in page],
                "count": len(page),
                "total": len(filings),
                "start": start,
                "max": max
            }
        except Exception as e:
            return _error("List filings", e)

    async def resolve_document(
        self,
        cik: str,
        accession_number: str,
        primary_document: Optional[str] = None
    ) -> dict[str, Any]:
        """Best HTML document URL for a filing"""
        try:
            url = await self.container.resolve_document.execute(cik, accession_number, primary_document)
            return {
                "success": True,
                "url": url,
                "archive_url": urls.archive_directory_url(cik, accession_number)
            }
        except Exception as e:
            return _error("Resolve document", e)

    async def fetch_document(self, cik: str, accession_number: str, filename: str) -> dict[str, Any]:
        """Download a filing document and save it under the cache directory"""
        try:
            data = await self.container.fetch_document.execute(cik, accession_number, filename)
            path = (
                self.documents_dir
                / urls.strip_cik_zeros(cik)
                / urls.strip_accession_dashes(accession_number)
                / Path(filename).name
            )
            await asyncio.to_thread(_write_bytes, path, data)
            return {
                "success": True,
                "path": str(path),
                "url": urls.document_url(cik, accession_number, filename),
                "size_bytes": len(data)
            }
        except Exception as e:
            return _error("Fetch document", e)

    async def get_13f_holdings(
        self,
        cik: str,
        accession_number: str,
        top_n: Optional[int] = None
    ) -> dict[str, Any]:
        """Holdings of a 13F-HR filing"""
        try:
            holdings = await self.container.get_13f_holdings.execute(cik, accession_number, top_n)
            return {
                "success": True,
                "holdings": [holding_to_dict(h) for h in holdings],
                "count": len(holdings),
                "total_value_usd_thousands": sum(h.value_usd_thousands or 0 for h in holdings)
            }
        except Exception as e:
            return _error("Get 13F holdings", e)

    async def list_managers(
        self,
        query: Optional[str] = None,
        limit: int = 25,
        force_refresh: bool = False
    ) -> dict[str, Any]:
        """List 13F managers"""
        try:
            managers = await self.container.list_managers.execute(query=query, force_refresh=force_refresh)
            page = managers[:limit] if limit else managers
            return {
                "success": True,
                "managers": [manager_to_dict(m) for m in page],
                "count": len(page),
                "total": len(managers)
            }
        except Exception as e:
            return _error("List managers", e)

    async def get_filing_text(
        self,
        cik: str,
        accession_number: str,
        primary_document: Optional[str] = None,
        force_refresh: bool = False,
        invalidate: bool = False
    ) -> dict[str, Any]:
        """Plain text of a filing (cached), or drop its cache entry"""
        try:
            service = self.container.filing_text
            if invalidate:
                await service.invalidate(cik, accession_number)
                return {"success": True, "invalidated": True}

            text = await service.execute(cik, accession_number, primary_document, force_refresh)
            path = self.container.text_cache.path_for(cik.strip(), accession_number)
            return {
                "success": True,
                "path": str(path),
                "size_bytes": len(text.encode("utf-8")),
                "total_lines": text.count("\n") + 1
            }
        except Exception as e:
            return _error("Get filing text", e)
