"""
Domain Models - Pure business entities

No external dependencies. These represent the core business concepts.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class Company:
    """A company from the SEC ticker directory"""
    cik: str  # 10-digit zero-padded
    ticker: str
    name: str

    @property
    def id(self) -> str:
        return self.cik


@dataclass(frozen=True)
class Filing:
    """One entry of a filer's submission history"""
    accession_number: str  # dashed form, e.g. 0000320193-24-000123
    form: str
    filed_at: date
    filing_date_string: str  # YYYY-MM-DD as received
    report_date: Optional[date] = None
    primary_document: Optional[str] = None
    items: Optional[str] = None

    @property
    def id(self) -> str:
        return self.accession_number


@dataclass(frozen=True)
class CompanySubmissions:
    """Filer header plus its recent filings, zipped into records"""
    cik: str
    name: str
    tickers: list[str] = field(default_factory=list)
    exchanges: list[str] = field(default_factory=list)
    filings: list[Filing] = field(default_factory=list)


@dataclass(frozen=True)
class Manager:
    """A 13F filer found in a quarterly master index"""
    cik: str
    name: str

    @property
    def id(self) -> str:
        return self.cik


@dataclass(frozen=True)
class Holding:
    """One row of a 13F information table"""
    issuer: str
    title_of_class: Optional[str] = None
    cusip: Optional[str] = None
    value_usd_thousands: Optional[int] = None
    shares_or_principal_amount: Optional[int] = None
    shares_or_principal_type: Optional[str] = None
    put_or_call: Optional[str] = None
    investment_discretion: Optional[str] = None
    voting_authority_sole: Optional[int] = None
    voting_authority_shared: Optional[int] = None
    voting_authority_none: Optional[int] = None

    @property
    def id(self) -> str:
        # Display key only, not unique across a table.
        return "|".join([self.issuer, self.cusip or "", self.title_of_class or ""])


@dataclass(frozen=True)
class IndexEntry:
    """A file in a filing's archive directory"""
    name: str
    size: Optional[int] = None
    type: Optional[str] = None
    last_modified: Optional[str] = None


@dataclass(frozen=True)
class FilingIndex:
    """Archive directory listing (index.json) for one filing"""
    items: list[IndexEntry] = field(default_factory=list)

    def first(self, predicate) -> Optional[IndexEntry]:
        return next((item for item in self.items if predicate(item.name)), None)
