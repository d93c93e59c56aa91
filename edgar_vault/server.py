"""
edgar-vault MCP Server

MCP delivery layer - wraps the handlers as MCP tools.
Separation of concerns: this file only handles MCP protocol.
"""
import argparse
import logging
from typing import Optional

from mcp.server.fastmcp import FastMCP

from .adapters.mcp import TOOL_SCHEMAS, MCPHandlers
from .config import get_settings
from .container import Container

logger = logging.getLogger(__name__)

mcp = FastMCP("edgar-vault")

_handlers: Optional[MCPHandlers] = None


def get_handlers() -> MCPHandlers:
    global _handlers
    if _handlers is None:
        _handlers = MCPHandlers(Container())
    return _handlers


@mcp.tool(description=TOOL_SCHEMAS["list_companies"]["description"])
async def list_companies(query: Optional[str] = None, limit: int = 25, force_refresh: bool = False) -> dict:
    return await get_handlers().list_companies(query=query, limit=limit, force_refresh=force_refresh)


@mcp.tool(description=TOOL_SCHEMAS["list_filings"]["description"])
async def list_filings(cik: str, forms: Optional[list[str]] = None, start: int = 0, max: int = 15) -> dict:
    return await get_handlers().list_filings(cik=cik, forms=forms, start=start, max=max)


@mcp.tool(description=TOOL_SCHEMAS["resolve_document"]["description"])
async def resolve_document(cik: str, accession_number: str, primary_document: Optional[str] = None) -> dict:
    return await get_handlers().resolve_document(cik, accession_number, primary_document)


@mcp.tool(description=TOOL_SCHEMAS["fetch_document"]["description"])
async def fetch_document(cik: str, accession_number: str, filename: str) -> dict:
    return await get_handlers().fetch_document(cik, accession_number, filename)


@mcp.tool(description=TOOL_SCHEMAS["get_13f_holdings"]["description"])
async def get_13f_holdings(cik: str, accession_number: str, top_n: Optional[int] = None) -> dict:
    return await get_handlers().get_13f_holdings(cik, accession_number, top_n)


@mcp.tool(description=TOOL_SCHEMAS["list_managers"]["description"])
async def list_managers(query: Optional[str] = None, limit: int = 25, force_refresh: bool = False) -> dict:
    return await get_handlers().list_managers(query=query, limit=limit, force_refresh=force_refresh)


@mcp.tool(description=TOOL_SCHEMAS["get_filing_text"]["description"])
async def get_filing_text(
    cik: str,
    accession_number: str,
    primary_document: Optional[str] = None,
    force_refresh: bool = False,
    invalidate: bool = False
) -> dict:
    return await get_handlers().get_filing_text(
        cik, accession_number, primary_document, force_refresh, invalidate
    )


def main():
    """Main entry point for the MCP server."""
    global _handlers

    parser = argparse.ArgumentParser(
        description="edgar-vault: SEC EDGAR filings, 13F holdings and cached text over MCP."
    )
    parser.add_argument(
        "--transport",
        default="stdio",
        choices=["stdio", "streamable-http"],
        help="Transport method (default: stdio)"
    )
    parser.add_argument("--host", default="127.0.0.1", help="Host for HTTP transport")
    parser.add_argument("--port", type=int, default=6660, help="Port for HTTP transport")
    parser.add_argument(
        "--cache-dir",
        default=None,
        help=f"Cache directory (default: {get_settings().cache_dir}, or set EDGAR_VAULT_CACHE_DIR)"
    )
    parser.add_argument("--user-agent", default=None, help="SEC User-Agent (app name + contact)")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="[%(asctime)s] [%(levelname)s] %(message)s",
        datefmt="%Y/%m/%d %H:%M:%S"
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)

    container = Container(cache_dir=args.cache_dir, user_agent=args.user_agent)
    _handlers = MCPHandlers(container)
    logger.info("Cache directory: %s", container.settings.cache_dir)

    if args.transport == "streamable-http":
        mcp.settings.host = args.host
        mcp.settings.port = args.port
        logger.info("Starting edgar-vault on http://%s:%s", args.host, args.port)
        mcp.run(transport="streamable-http")
    else:
        mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
