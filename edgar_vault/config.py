"""
Configuration - Settings loaded from the environment

All knobs the outer layer can turn: identification string, timeouts, cache
TTLs and file names, retry constants, quarter fallback depth.
Environment variables use the EDGAR_VAULT_ prefix, e.g. EDGAR_VAULT_USER_AGENT.
"""
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings

DAY = 24 * 60 * 60


class Settings(BaseSettings):
    """Settings for the SEC retrieval core and its disk caches."""

    user_agent: str = Field(
        "edgar-vault admin@example.com",
        description="Descriptive User-Agent (app name + contact) required by SEC",
    )
    timeout: float = Field(30.0, description="Request timeout in seconds")
    master_index_timeout: float = Field(
        60.0, description="Timeout for quarterly master index downloads"
    )
    retry_backoff: float = Field(1.2, description="Fixed delay before the retry, seconds")
    max_retries: int = Field(1, description="Retries after a throttled response")

    cache_dir: Path = Field(Path("/tmp/edgar-vault-cache"), description="Disk cache root")
    company_ttl: float = Field(7 * DAY, description="Company directory TTL, seconds")
    manager_ttl: float = Field(30 * DAY, description="13F manager directory TTL, seconds")
    filing_text_ttl: float = Field(30 * DAY, description="Filing text TTL, seconds")

    company_cache_file: str = "sec_company_tickers_cache_v1.json"
    manager_cache_file: str = "sec_13f_managers_cache_v1.json"
    filing_text_cache_dir: str = "sec_filings_text_cache_v1"

    fallback_quarters: int = Field(
        4, description="Quarters to step back when a master index has no 13F filers"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "EDGAR_VAULT_",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    return Settings()
