"""
Ports - Interfaces for external dependencies

These define HOW the core interacts with the outside world,
but NOT the implementation details.
"""
from abc import ABC, abstractmethod
from typing import Optional

JSON_ACCEPT = "application/json,text/html,*/*"
TEXT_ACCEPT = "text/plain,*/*"


class Transport(ABC):
    """Port for fetching raw bytes from the SEC"""

    @abstractmethod
    async def fetch(
        self,
        url: str,
        accept: str = JSON_ACCEPT,
        timeout: Optional[float] = None,
        sniff_blocks: bool = True
    ) -> bytes:
        """
        Fetch URL and return the body of a successful response.

        With sniff_blocks, a 2xx body that reads like a throttle notice is
        treated as a failure.
        """
        pass


class HTMLTextExtractor(ABC):
    """Port for turning an HTML document into plain text"""

    @abstractmethod
    def extract(self, html: bytes) -> str:
        """Return whitespace-normalized plain text"""
        pass
