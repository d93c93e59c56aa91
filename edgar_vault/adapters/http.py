"""
HTTP Adapter

Implements the Transport port with httpx. Throttling responses (403/429/503,
or a 2xx whose body is a block notice) are retried once after a fixed pause.
A second throttled answer is raised; SEC rate limits get worse, not better,
when hammered.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from ..core.content import block_message
from ..core.ports import JSON_ACCEPT, Transport
from ..errors import (
    HTTPStatusError,
    InvalidResponseError,
    InvalidURLError,
    UnexpectedContentError,
)

logger = logging.getLogger(__name__)

RETRY_STATUS = frozenset({403, 429, 503})


def _is_throttled(exc: BaseException) -> bool:
    if isinstance(exc, HTTPStatusError):
        return exc.status in RETRY_STATUS
    return isinstance(exc, UnexpectedContentError)


class HttpTransport(Transport):
    """SEC transport using httpx.AsyncClient"""

    def __init__(
        self,
        user_agent: str,
        *,
        timeout: float = 30.0,
        retry_backoff: float = 1.2,
        max_retries: int = 1,
        client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        if not user_agent.strip():
            raise ValueError("SEC requires a descriptive User-Agent (app name + contact)")
        self.user_agent = user_agent
        self._timeout = timeout
        self._retry_backoff = retry_backoff
        self._max_retries = max_retries
        self._client = client or httpx.AsyncClient(follow_redirects=True)
        self._sleep = sleep

    async def fetch(
        self,
        url: str,
        accept: str = JSON_ACCEPT,
        timeout: Optional[float] = None,
        sniff_blocks: bool = True
    ) -> bytes:
        retrying = AsyncRetrying(
            retry=retry_if_exception(_is_throttled),
            wait=wait_fixed(self._retry_backoff),
            stop=stop_after_attempt(self._max_retries + 1),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
            sleep=self._sleep,
        )
        async for attempt in retrying:
            with attempt:
                return await self._fetch_once(url, accept, timeout or self._timeout, sniff_blocks)
        raise InvalidResponseError(url=url)  # pragma: no cover

    async def _fetch_once(self, url: str, accept: str, timeout: float, sniff_blocks: bool) -> bytes:
        headers = {"User-Agent": self.user_agent, "Accept": accept}
        logger.debug("GET %s", url)

        try:
            response = await self._client.get(url, headers=headers, timeout=timeout)
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
            raise InvalidURLError(f"Invalid URL: {exc}", url=url) from exc
        except httpx.TransportError as exc:
            raise InvalidResponseError(f"Request failed: {exc}", url=url) from exc

        if not 200 <= response.status_code < 300:
            raise HTTPStatusError(response.status_code, url=url)

        body = response.content
        hint = block_message(body) if sniff_blocks else None
        if hint:
            raise UnexpectedContentError(hint, url=url)
        return body

    async def aclose(self):
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()
