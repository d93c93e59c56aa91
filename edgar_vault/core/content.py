"""
Content sniffing for upstream payloads

SEC answers throttled or blocked clients with HTTP 200 and an HTML or
plain-text notice. These helpers tell such pages apart from real data so the
error says "blocked" instead of "could not decode".
"""
import json
from typing import Any, Optional

from ..errors import BLOCKED_HINT, DecodingFailedError, EdgarError, UnexpectedContentError

BLOCK_INDICATORS = (
    "request rate threshold",
    "rate limit",
    "too many requests",
    "temporarily unavailable",
    "service unavailable",
    "access denied",
    "forbidden",
    "unauthorized",
    "automated",
)

HTML_INSTEAD_OF_JSON_HINT = "Got HTML instead of JSON. Check User-Agent and rate limits."


def _prefix(data: bytes, limit: int) -> str:
    return data[:limit].decode("utf-8", errors="replace").strip()


def block_message(data: bytes, limit: int = 600) -> Optional[str]:
    """Return a remediation hint if the body looks like a throttle/block notice."""
    lower = _prefix(data, limit).lower()
    if not lower:
        return None
    if any(indicator in lower for indicator in BLOCK_INDICATORS):
        return BLOCKED_HINT
    return None


def looks_like_html(data: bytes, limit: int = 200) -> bool:
    """True if the payload starts like an HTML page rather than XML/JSON."""
    lower = _prefix(data, limit).lower()
    return lower.startswith(("<html", "<!doctype html")) or "<head" in lower


def decoding_error(data: bytes, url: Optional[str] = None) -> EdgarError:
    """Pick the most useful error for a payload that failed to decode."""
    hint = block_message(data)
    if hint:
        return UnexpectedContentError(hint, url=url)
    if _prefix(data, 200).startswith("<"):
        return UnexpectedContentError(HTML_INSTEAD_OF_JSON_HINT, url=url)
    return DecodingFailedError(url=url)


def decode_json(data: bytes, url: Optional[str] = None) -> Any:
    try:
        return json.loads(data)
    except (ValueError, UnicodeDecodeError) as exc:
        raise decoding_error(data, url) from exc
