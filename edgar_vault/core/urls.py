"""
EDGAR URL construction

Filer IDs appear padded in the JSON APIs and unpadded in archive paths;
accession numbers appear dashed in metadata and undashed in archive paths.
"""
from urllib.parse import quote

from ..errors import InvalidURLError, MissingCIKError

SEC_WWW = "https://www.sec.gov"
SEC_DATA = "https://data.sec.gov"

COMPANY_TICKERS_URL = f"{SEC_WWW}/files/company_tickers.json"


def strip_cik_zeros(cik: str) -> str:
    """'0000320193' -> '320193'"""
    text = cik.strip()
    if not text:
        raise MissingCIKError()
    try:
        return str(int(text))
    except ValueError:
        raise InvalidURLError(f"Invalid CIK: {cik!r}") from None


def pad_cik(cik: str | int) -> str:
    """320193 -> '0000320193'"""
    text = str(cik).strip()
    if not text:
        raise MissingCIKError()
    try:
        return f"{int(text):010d}"
    except ValueError:
        raise InvalidURLError(f"Invalid CIK: {cik!r}") from None


def strip_accession_dashes(accession_number: str) -> str:
    return accession_number.strip().replace("-", "")


def submissions_url(cik: str) -> str:
    return f"{SEC_DATA}/submissions/CIK{pad_cik(cik)}.json"


def archive_directory_url(cik: str, accession_number: str) -> str:
    accession = strip_accession_dashes(accession_number)
    if not accession:
        raise InvalidURLError("Missing accession number.")
    return f"{SEC_WWW}/Archives/edgar/data/{strip_cik_zeros(cik)}/{accession}/"


def document_url(cik: str, accession_number: str, filename: str) -> str:
    if not filename.strip():
        raise InvalidURLError("Missing document filename.")
    return archive_directory_url(cik, accession_number) + quote(filename.strip())


def filing_index_url(cik: str, accession_number: str) -> str:
    return document_url(cik, accession_number, "index.json")


def submission_text_url(cik: str, accession_number: str) -> str:
    accession = strip_accession_dashes(accession_number)
    return document_url(cik, accession_number, f"{accession}.txt")


def master_index_url(year: int, quarter: int) -> str:
    if quarter not in (1, 2, 3, 4):
        raise InvalidURLError(f"Invalid quarter: {quarter}")
    return f"{SEC_WWW}/Archives/edgar/full-index/{year}/QTR{quarter}/master.idx"
