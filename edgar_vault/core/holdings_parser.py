"""
13F information table parser

Streams the XML with lxml's iterparse, accumulating one holding per
<infoTable> element. Element names are matched case-insensitively and
without namespace prefix, since filers are inconsistent about both.
"""
import logging
import re
from dataclasses import dataclass
from io import BytesIO
from typing import Optional

from lxml import etree

from ..errors import DecodingFailedError, UnexpectedContentError
from .content import looks_like_html
from .domain import Holding

logger = logging.getLogger(__name__)

RECORD_ELEMENT = "infotable"
HTML_HINT = "Got HTML instead of 13F XML. Check User-Agent and rate limits."

_TEXT_FIELDS = {
    "nameofissuer": "issuer",
    "titleofclass": "title_of_class",
    "cusip": "cusip",
    "sshprnamttype": "shares_or_principal_type",
    "putcall": "put_or_call",
    "investmentdiscretion": "investment_discretion",
}

_INT_FIELDS = {
    "value": "value_usd_thousands",
    "sshprnamt": "shares_or_principal_amount",
    "sole": "voting_authority_sole",
    "shared": "voting_authority_shared",
    "none": "voting_authority_none",
}


@dataclass
class _Builder:
    issuer: str = ""
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

    def build(self) -> Holding:
        return Holding(**vars(self))


def _local_name(tag: str) -> str:
    # "{ns}infoTable", "ns1:infoTable" and "INFOTABLE" all reduce to "infotable"
    return tag.rsplit("}", 1)[-1].rsplit(":", 1)[-1].lower()


_INTEGER = re.compile(r"-?[0-9]+")


def _to_int(text: str) -> Optional[int]:
    digits = text.replace(",", "")
    if not _INTEGER.fullmatch(digits):
        return None
    return int(digits)


def parse_holdings(xml: bytes) -> list[Holding]:
    """
    Parse an information table into holdings.

    Records without an issuer name are dropped. Numeric fields accept ASCII
    digits with an optional sign and thousands commas ("1,000" is 1000);
    anything else, including "1_000", decimals and non-ASCII digits,
    becomes None.

    Raises:
        UnexpectedContentError: payload is an HTML page
        DecodingFailedError: payload is not well-formed XML
    """
    if looks_like_html(xml):
        raise UnexpectedContentError(HTML_HINT)

    holdings: list[Holding] = []
    current: Optional[_Builder] = None

    try:
        for event, element in etree.iterparse(
            BytesIO(xml),
            events=("start", "end"),
            resolve_entities=False,
            no_network=True,
        ):
            name = _local_name(element.tag)

            if event == "start":
                if name == RECORD_ELEMENT:
                    current = _Builder()
                continue

            if name == RECORD_ELEMENT:
                if current is not None and current.issuer:
                    holdings.append(current.build())
                current = None
                element.clear()
                continue

            if current is None:
                continue

            value = (element.text or "").strip()
            if name in _TEXT_FIELDS:
                setattr(current, _TEXT_FIELDS[name], value)
            elif name in _INT_FIELDS:
                setattr(current, _INT_FIELDS[name], _to_int(value))
    except etree.XMLSyntaxError as exc:
        raise DecodingFailedError(f"Malformed 13F XML: {exc}") from exc

    logger.debug("Parsed %d holdings", len(holdings))
    return holdings
