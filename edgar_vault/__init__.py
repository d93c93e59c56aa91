"""
edgar-vault - SEC EDGAR retrieval, resolution and disk caching

Turns filer IDs and accession numbers into filings, documents, 13F holdings
and plain text, while staying polite to a rate-limited origin.
"""
__version__ = "0.1.0"
