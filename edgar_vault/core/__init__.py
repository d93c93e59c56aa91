"""
Core - Domain logic and ports

This package contains:
- domain.py: Pure domain models
- ports.py: Port interfaces (abstractions for external dependencies)
- resolver.py: Filing/document/holdings resolution over a Transport
- services.py: Application services (use cases)
"""
from .domain import Company, Filing, CompanySubmissions, Manager, Holding, FilingIndex, IndexEntry
from .ports import Transport, HTMLTextExtractor
from .resolver import FilingIndexResolver
from .services import (
    ListCompaniesService,
    ListFilingsService,
    ResolveDocumentService,
    FetchDocumentService,
    ThirteenFHoldingsService,
    ListManagersService,
    FilingTextService,
)

__all__ = [
    # Domain models
    "Company",
    "Filing",
    "CompanySubmissions",
    "Manager",
    "Holding",
    "FilingIndex",
    "IndexEntry",
    # Ports
    "Transport",
    "HTMLTextExtractor",
    # Resolution
    "FilingIndexResolver",
    # Services
    "ListCompaniesService",
    "ListFilingsService",
    "ResolveDocumentService",
    "FetchDocumentService",
    "ThirteenFHoldingsService",
    "ListManagersService",
    "FilingTextService",
]
