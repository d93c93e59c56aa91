#!/usr/bin/env python3
"""
CLI for edgar-vault - exercise the tools without an MCP client

Usage:
  edgar-vault list-tools                               # Show MCP tool definitions
  edgar-vault companies --query apple                  # Search the company directory
  edgar-vault filings 320193 --form 10-K --form 10-Q   # Filer's filings, newest first
  edgar-vault best-url 320193 0000320193-24-000123     # HTML document to open
  edgar-vault document 320193 0000320193-24-000123 aapl-20240928.htm
  edgar-vault holdings 1067983 0000950123-24-005617 --top 10
  edgar-vault managers --query berkshire               # 13F managers
  edgar-vault text 320193 0000320193-24-000123         # Cached plain text
  edgar-vault text 320193 0000320193-24-000123 --invalidate

Output is JSON. Cache directory and User-Agent come from EDGAR_VAULT_* env vars
unless overridden with --cache-dir / --user-agent.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Awaitable, Callable

from .adapters.mcp import TOOL_SCHEMAS, MCPHandlers
from .container import Container


async def list_tools_command() -> int:
    """Show MCP tool definitions"""
    print("=" * 80)
    print("MCP TOOL DEFINITIONS")
    print("=" * 80)
    print()

    for tool_schema in TOOL_SCHEMAS.values():
        print(f"Tool: {tool_schema['name']}")
        print()
        print("Description:")
        print(tool_schema['description'])
        print()
        print("Input Schema:")
        print(json.dumps(tool_schema['inputSchema'], indent=2))
        print()
        print("-" * 80)
        print()

    return 0


async def run_handler(
    args: argparse.Namespace,
    call: Callable[[MCPHandlers], Awaitable[dict[str, Any]]]
) -> int:
    """Build the container, run one handler, print its JSON result"""
    container = Container(cache_dir=args.cache_dir, user_agent=args.user_agent)
    try:
        result = await call(MCPHandlers(container))
    finally:
        await container.aclose()

    print(json.dumps(result, indent=2, default=str))
    return 0 if result.get("success") else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="edgar-vault CLI - SEC EDGAR retrieval with disk caching"
    )
    parser.add_argument("--cache-dir", default=None, help="Cache directory (default: $EDGAR_VAULT_CACHE_DIR)")
    parser.add_argument("--user-agent", default=None, help="SEC User-Agent (app name + contact)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("list-tools", help="Show MCP tool definitions")

    companies = subparsers.add_parser("companies", help="Search the company directory")
    companies.add_argument("--query", help="Ticker or name fragment")
    companies.add_argument("--limit", type=int, default=25, help="Max results (default: 25)")
    companies.add_argument("--refresh", action="store_true", help="Ignore the cached directory")

    filings = subparsers.add_parser("filings", help="List a filer's filings")
    filings.add_argument("cik", help="Filer CIK")
    filings.add_argument("--form", action="append", default=[], help="Form type to keep (repeatable)")
    filings.add_argument("--start", type=int, default=0, help="Starting index (default: 0)")
    filings.add_argument("--max", type=int, default=15, help="Max results (default: 15)")

    best_url = subparsers.add_parser("best-url", help="Resolve the HTML document to open")
    best_url.add_argument("cik", help="Filer CIK")
    best_url.add_argument("accession_number", help="Accession number")
    best_url.add_argument("--primary", help="Primary document filename hint")

    document = subparsers.add_parser("document", help="Download one filing document")
    document.add_argument("cik", help="Filer CIK")
    document.add_argument("accession_number", help="Accession number")
    document.add_argument("filename", help="Document filename")

    holdings = subparsers.add_parser("holdings", help="13F holdings of a filing")
    holdings.add_argument("cik", help="Manager CIK")
    holdings.add_argument("accession_number", help="Accession number of the 13F-HR")
    holdings.add_argument("--top", type=int, default=None, help="Only the N largest positions")

    managers = subparsers.add_parser("managers", help="List 13F managers")
    managers.add_argument("--query", help="Name fragment or CIK")
    managers.add_argument("--limit", type=int, default=25, help="Max results (default: 25)")
    managers.add_argument("--refresh", action="store_true", help="Rebuild the directory")

    text = subparsers.add_parser("text", help="Plain text of a filing (cached)")
    text.add_argument("cik", help="Filer CIK")
    text.add_argument("accession_number", help="Accession number")
    text.add_argument("--primary", help="Primary document filename hint")
    text.add_argument("--refresh", action="store_true", help="Re-derive even if cached")
    text.add_argument("--invalidate", action="store_true", help="Drop the cached text only")

    return parser


COMMANDS: dict[str, Callable[[argparse.Namespace], Callable[[MCPHandlers], Awaitable[dict[str, Any]]]]] = {
    "companies": lambda a: lambda h: h.list_companies(a.query, a.limit, a.refresh),
    "filings": lambda a: lambda h: h.list_filings(a.cik, a.form, a.start, a.max),
    "best-url": lambda a: lambda h: h.resolve_document(a.cik, a.accession_number, a.primary),
    "document": lambda a: lambda h: h.fetch_document(a.cik, a.accession_number, a.filename),
    "holdings": lambda a: lambda h: h.get_13f_holdings(a.cik, a.accession_number, a.top),
    "managers": lambda a: lambda h: h.list_managers(a.query, a.limit, a.refresh),
    "text": lambda a: lambda h: h.get_filing_text(
        a.cik, a.accession_number, a.primary, a.refresh, a.invalidate
    ),
}


def main():
    parser = build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[%(asctime)s] [%(levelname)s] %(message)s",
        datefmt="%Y/%m/%d %H:%M:%S"
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "list-tools":
        return asyncio.run(list_tools_command())

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        return 1
    return asyncio.run(run_handler(args, command(args)))


if __name__ == "__main__":
    sys.exit(main())
