"""
Adapters - External implementations of ports

This package contains implementations of the core ports:
- http.py: httpx transport with one-shot throttle retry
- html_text.py: BeautifulSoup HTML to text extractor
- cache.py: TTL disk caches for companies, 13F managers and filing text
"""
from .http import HttpTransport
from .html_text import SoupTextExtractor
from .cache import CompanyDirectoryCache, ManagerDirectoryCache, FilingTextCache

__all__ = [
    "HttpTransport",
    "SoupTextExtractor",
    "CompanyDirectoryCache",
    "ManagerDirectoryCache",
    "FilingTextCache",
]
