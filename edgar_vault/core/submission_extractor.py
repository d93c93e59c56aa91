"""
Extract the INFORMATION TABLE attachment from a full submission text file.

Submission .txt files concatenate every document of a filing:

    <DOCUMENT>
    <TYPE>INFORMATION TABLE
    ...
    <TEXT>
    <XML>
    <?xml version="1.0"?> ...
    </XML>
    </TEXT>
    </DOCUMENT>

Scanning for markers is enough; a general SGML parser is not needed.
"""
import re
from typing import Optional

TYPE_MARKER = re.compile(r"<TYPE>INFORMATION TABLE", re.IGNORECASE)
TEXT_OPEN = re.compile(r"<TEXT>", re.IGNORECASE)
TEXT_CLOSE = re.compile(r"</TEXT>", re.IGNORECASE)

_XML_ENVELOPE = re.compile(rb"^\s*<XML>\s*(.*?)\s*</XML>\s*$", re.IGNORECASE | re.DOTALL)


def extract_information_table_xml(submission: bytes) -> Optional[bytes]:
    """Return the trimmed payload between <TEXT> and </TEXT> of the info table, or None."""
    text = submission.decode("utf-8", errors="replace")

    type_match = TYPE_MARKER.search(text)
    if type_match is None:
        return None

    open_match = TEXT_OPEN.search(text, type_match.end())
    if open_match is None:
        return None

    close_match = TEXT_CLOSE.search(text, open_match.end())
    if close_match is None:
        return None

    payload = text[open_match.end():close_match.start()].strip()
    if not payload:
        return None
    return payload.encode("utf-8")


def unwrap_xml_envelope(payload: bytes) -> bytes:
    """Strip the <XML>...</XML> wrapper EDGAR puts around embedded XML documents."""
    match = _XML_ENVELOPE.match(payload)
    return match.group(1) if match else payload
