"""
Filing Index Resolver - turns filer IDs and accession numbers into bytes

Cheap paths are tried before authoritative ones: the submission history
usually names the primary document, so the archive index is only fetched
when that hint is missing or unusable. Every fallback chain here is
sequential; nothing is fetched speculatively.
"""
import logging
from datetime import date, datetime
from typing import Any, Iterable, Optional, Sequence

from ..errors import DecodingFailedError, EdgarError, HTTPStatusError, InvalidResponseError
from . import urls
from .content import decode_json
from .domain import Company, CompanySubmissions, Filing, FilingIndex, Holding, IndexEntry
from .holdings_parser import parse_holdings
from .ports import HTMLTextExtractor, Transport
from .submission_extractor import extract_information_table_xml, unwrap_xml_envelope

logger = logging.getLogger(__name__)

INFO_TABLE_CANDIDATES = (
    "infotable.xml",
    "infoTable.xml",
    "informationtable.xml",
    "informationTable.xml",
    "form13fInfoTable.xml",
    "form13fInformationTable.xml",
)


def is_html_name(name: str) -> bool:
    return name.lower().endswith((".htm", ".html"))


def is_xml_name(name: str) -> bool:
    return name.lower().endswith(".xml")


def is_info_table_name(name: str) -> bool:
    lower = name.lower()
    return is_xml_name(lower) and ("infotable" in lower or "informationtable" in lower)


def _at(values: Optional[Sequence[Any]], index: int) -> Optional[Any]:
    """Positional lookup where a short or missing array means 'field absent'."""
    if values is None or not 0 <= index < len(values):
        return None
    return values[index]


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        return None


def _require_dict(value: Any, url: str) -> dict:
    if not isinstance(value, dict):
        raise DecodingFailedError(f"Expected a JSON object from {url}", url=url)
    return value


def zip_recent_filings(recent: dict, form_filter: Iterable[str] = ()) -> list[Filing]:
    """
    Zip the parallel arrays of `filings.recent` into Filing records.

    Entries whose filing date does not parse are skipped. Results are sorted
    by filing date, newest first.
    """
    forms_wanted = set(form_filter)
    accessions = recent.get("accessionNumber") or []

    filings: list[Filing] = []
    for idx, accession in enumerate(accessions):
        form = _at(recent.get("form"), idx) or ""
        if forms_wanted and form not in forms_wanted:
            continue

        filing_date_string = _at(recent.get("filingDate"), idx) or ""
        filed_at = _parse_date(filing_date_string)
        if filed_at is None:
            continue

        filings.append(Filing(
            accession_number=accession,
            form=form,
            filed_at=filed_at,
            filing_date_string=filing_date_string,
            report_date=_parse_date(_at(recent.get("reportDate"), idx)),
            primary_document=_at(recent.get("primaryDocument"), idx) or None,
            items=_at(recent.get("items"), idx) or None,
        ))

    filings.sort(key=lambda f: f.filed_at, reverse=True)
    return filings


class FilingIndexResolver:
    """Resolves companies, filings, documents and 13F holdings from EDGAR"""

    def __init__(self, transport: Transport, text_extractor: Optional[HTMLTextExtractor] = None):
        self.transport = transport
        self.text_extractor = text_extractor

    # ------------------------------------------------------------------
    # Companies and submission history
    # ------------------------------------------------------------------
    async def fetch_companies(self) -> list[Company]:
        """Download the ticker -> CIK directory, sorted by ticker"""
        url = urls.COMPANY_TICKERS_URL
        payload = _require_dict(decode_json(await self.transport.fetch(url), url), url)

        companies = []
        for row in payload.values():
            try:
                companies.append(Company(
                    cik=urls.pad_cik(row["cik_str"]),
                    ticker=str(row["ticker"]),
                    name=str(row["title"]),
                ))
            except (KeyError, TypeError, EdgarError) as exc:
                raise DecodingFailedError(f"Malformed company row: {row!r}", url=url) from exc

        companies.sort(key=lambda c: c.ticker.casefold())
        logger.info("Fetched %d companies", len(companies))
        return companies

    async def fetch_company_submissions(self, cik: str, form_filter: Iterable[str] = ()) -> CompanySubmissions:
        url = urls.submissions_url(cik)
        payload = _require_dict(decode_json(await self.transport.fetch(url), url), url)

        try:
            recent = payload["filings"]["recent"]
            filings = zip_recent_filings(recent, form_filter)
        except (KeyError, TypeError, AttributeError) as exc:
            raise DecodingFailedError("Submission history lacks filings.recent", url=url) from exc

        return CompanySubmissions(
            cik=urls.pad_cik(payload.get("cik") or cik),
            name=payload.get("name") or "",
            tickers=list(payload.get("tickers") or []),
            exchanges=list(payload.get("exchanges") or []),
            filings=filings,
        )

    async def list_recent_filings(self, cik: str, form_filter: Iterable[str] = ()) -> list[Filing]:
        """Filer's recent filings, newest first, optionally limited to exact form types"""
        submissions = await self.fetch_company_submissions(cik, form_filter)
        return submissions.filings

    # ------------------------------------------------------------------
    # Archive documents
    # ------------------------------------------------------------------
    def archive_directory_url(self, cik: str, accession_number: str) -> str:
        return urls.archive_directory_url(cik, accession_number)

    def document_url(self, cik: str, accession_number: str, filename: str) -> str:
        return urls.document_url(cik, accession_number, filename)

    async def filing_index(self, cik: str, accession_number: str) -> FilingIndex:
        url = urls.filing_index_url(cik, accession_number)
        payload = _require_dict(decode_json(await self.transport.fetch(url), url), url)

        try:
            rows = payload["directory"]["item"]
            items = [
                IndexEntry(
                    name=row["name"],
                    size=_as_int(row.get("size")),
                    type=row.get("type"),
                    last_modified=row.get("last-modified") or row.get("lastModified"),
                )
                for row in rows
            ]
        except (KeyError, TypeError, AttributeError) as exc:
            raise DecodingFailedError("index.json lacks directory.item", url=url) from exc
        return FilingIndex(items=items)

    async def best_document_url(
        self,
        cik: str,
        accession_number: str,
        primary_document: Optional[str] = None
    ) -> str:
        """URL of the HTML document to open for a filing"""
        if primary_document and is_html_name(primary_document):
            return urls.document_url(cik, accession_number, primary_document)

        index = await self.filing_index(cik, accession_number)
        entry = index.first(is_html_name)
        if entry is None:
            raise InvalidResponseError(
                f"No HTML document in filing {accession_number}",
                url=urls.archive_directory_url(cik, accession_number),
            )
        return urls.document_url(cik, accession_number, entry.name)

    async def fetch_document(self, cik: str, accession_number: str, filename: str) -> bytes:
        return await self.transport.fetch(urls.document_url(cik, accession_number, filename))

    async def fetch_submission_text(self, cik: str, accession_number: str) -> bytes:
        return await self.transport.fetch(urls.submission_text_url(cik, accession_number))

    async def fetch_full_text(
        self,
        cik: str,
        accession_number: str,
        primary_document: Optional[str] = None
    ) -> str:
        """
        Plain text of a filing.

        Uses the primary document when known, else the first HTML file in the
        archive index, else the raw submission text.
        """
        if self.text_extractor is None:
            raise RuntimeError("FilingIndexResolver needs an HTMLTextExtractor for full text")

        if primary_document:
            data = await self.fetch_document(cik, accession_number, primary_document)
            return self.text_extractor.extract(data)

        index = await self.filing_index(cik, accession_number)
        entry = index.first(is_html_name)
        if entry is not None:
            data = await self.fetch_document(cik, accession_number, entry.name)
            return self.text_extractor.extract(data)

        try:
            data = await self.fetch_submission_text(cik, accession_number)
        except EdgarError as exc:
            raise InvalidResponseError(
                f"No readable document in filing {accession_number}",
                url=urls.archive_directory_url(cik, accession_number),
            ) from exc
        return data.decode("utf-8", errors="replace")

    # ------------------------------------------------------------------
    # 13F holdings
    # ------------------------------------------------------------------
    async def fetch_13f_holdings(self, cik: str, accession_number: str) -> list[Holding]:
        """
        Holdings of a 13F-HR filing.

        1. Guess common info table filenames (404 moves to the next guess).
        2. Extract the INFORMATION TABLE from the full submission text.
        3. Find an XML file through the archive index.
        """
        holdings = await self._holdings_from_candidates(cik, accession_number)
        if holdings:
            return holdings

        holdings = await self._holdings_from_submission(cik, accession_number)
        if holdings:
            return holdings

        return await self._holdings_from_index(cik, accession_number)

    async def _holdings_from_candidates(self, cik: str, accession_number: str) -> list[Holding]:
        for candidate in INFO_TABLE_CANDIDATES:
            try:
                data = await self.fetch_document(cik, accession_number, candidate)
            except HTTPStatusError as exc:
                if exc.status == 404:
                    continue
                logger.info("Info table probe %s failed (%s), trying submission text", candidate, exc)
                return []
            except EdgarError as exc:
                logger.info("Info table probe %s failed (%s), trying submission text", candidate, exc)
                return []

            try:
                holdings = parse_holdings(data)
            except EdgarError as exc:
                logger.info("Could not parse %s (%s), trying submission text", candidate, exc)
                return []
            if holdings:
                logger.debug("Holdings found via %s", candidate)
            return holdings
        return []

    async def _holdings_from_submission(self, cik: str, accession_number: str) -> list[Holding]:
        try:
            submission = await self.fetch_submission_text(cik, accession_number)
        except EdgarError as exc:
            logger.info("Submission text unavailable (%s), trying archive index", exc)
            return []

        payload = extract_information_table_xml(submission)
        if payload is None:
            logger.info("No INFORMATION TABLE in submission text, trying archive index")
            return []

        try:
            return parse_holdings(unwrap_xml_envelope(payload))
        except EdgarError as exc:
            logger.info("Embedded info table did not parse (%s), trying archive index", exc)
            return []

    async def _holdings_from_index(self, cik: str, accession_number: str) -> list[Holding]:
        index = await self.filing_index(cik, accession_number)
        entry = index.first(is_info_table_name) or index.first(is_xml_name)
        if entry is None:
            raise InvalidResponseError(
                f"No information table found for filing {accession_number}",
                url=urls.archive_directory_url(cik, accession_number),
            )

        holdings = parse_holdings(await self.fetch_document(cik, accession_number, entry.name))
        if not holdings:
            raise InvalidResponseError(
                f"Information table {entry.name} has no holdings",
                url=urls.document_url(cik, accession_number, entry.name),
            )
        return holdings


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
