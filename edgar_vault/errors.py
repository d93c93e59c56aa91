"""
Errors - Failure kinds raised by the retrieval core

Every error carries a human-readable message. Callers in the delivery layer
render `hint` directly, so the text is written for a person, not a parser.
"""
from typing import Optional


BLOCKED_HINT = (
    "SEC rate limit or access blocked. Ensure your User-Agent includes "
    "app name + contact, then retry in a minute."
)


class EdgarError(Exception):
    """
    Base class for all errors raised by edgar-vault.

    Attributes
    ----------
    message : str
        Human-readable explanation.
    status : int | None
        HTTP status code, if one was received.
    url : str | None
        Requested URL, useful for logs.
    """

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        url: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.url = url

    @property
    def hint(self) -> str:
        return self.message

    def __str__(self) -> str:
        parts: list[str] = [self.message]
        if self.status is not None:
            parts.append(f"status={self.status}")
        if self.url:
            parts.append(f"url={self.url}")
        return " | ".join(parts)


class InvalidURLError(EdgarError):
    """A URL could not be built or was rejected by the HTTP client."""

    def __init__(self, message: str = "Invalid URL.", *, url: Optional[str] = None) -> None:
        super().__init__(message, url=url)


class InvalidResponseError(EdgarError):
    """The response was missing, unreadable, or lacked what we needed."""

    def __init__(self, message: str = "Invalid network response.", *, url: Optional[str] = None) -> None:
        super().__init__(message, url=url)


class HTTPStatusError(EdgarError):
    """Upstream answered with a non-2xx status."""

    def __init__(self, status: int, *, url: Optional[str] = None) -> None:
        super().__init__(
            f"SEC request failed with HTTP status {status}.",
            status=status,
            url=url,
        )


class DecodingFailedError(EdgarError):
    """A JSON or XML payload could not be decoded."""

    def __init__(self, message: str = "Failed to decode SEC response.", *, url: Optional[str] = None) -> None:
        super().__init__(message, url=url)


class UnexpectedContentError(EdgarError):
    """Upstream served a block page or HTML where JSON/XML was expected."""

    def __init__(self, hint: str, *, url: Optional[str] = None) -> None:
        super().__init__(f"SEC returned unexpected content. {hint}", url=url)
        self._hint = hint

    @property
    def hint(self) -> str:
        return self._hint


class MissingCIKError(EdgarError):
    """An operation needed a filer ID and none was given."""

    def __init__(self) -> None:
        super().__init__("Missing CIK for selected company.")
