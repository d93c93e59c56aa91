"""
MCP Tool Definitions

Single source of truth for tool schemas and descriptions.
Used by the MCP server and the CLI's list-tools command.
"""

_CIK = {
    "type": "string",
    "description": "SEC filer ID (CIK), padded or not (e.g. 0000320193 or 320193)"
}

_ACCESSION = {
    "type": "string",
    "description": "Accession number, dashed or not (e.g. 0000320193-24-000123)"
}

# Tool schemas for MCP
TOOL_SCHEMAS = {
    "list_companies": {
        "name": "list_companies",
        "description": """Search the SEC company directory (ticker -> CIK). Cached on disk for a week.

list_companies("AAPL") → [{cik: "0000320193", ticker: "AAPL", name: "Apple Inc."}]
""",
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Ticker or company name fragment. Omit to list all."
                },
                "limit": {
                    "type": "integer",
                    "description": "Maximum companies to return",
                    "default": 25
                },
                "force_refresh": {
                    "type": "boolean",
                    "description": "Re-download the directory even if cached",
                    "default": False
                }
            },
            "required": []
        }
    },
    "list_filings": {
        "name": "list_filings",
        "description": """List a filer's recent filings. Newest first.

list_filings("320193") → all recent AAPL filings
list_filings("320193", ["10-K", "10-Q"]) → only exact form matches
""",
        "inputSchema": {
            "type": "object",
            "properties": {
                "cik": _CIK,
                "forms": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Exact form types to keep (e.g. 10-K, 8-K, 13F-HR). Empty keeps all."
                },
                "start": {
                    "type": "integer",
                    "description": "Starting index (newest first)",
                    "default": 0
                },
                "max": {
                    "type": "integer",
                    "description": "Maximum filings to return",
                    "default": 15
                }
            },
            "required": ["cik"]
        }
    },
    "resolve_document": {
        "name": "resolve_document",
        "description": """URL of the best HTML document to open for a filing.

Pass primary_document from list_filings to skip the archive index lookup.
""",
        "inputSchema": {
            "type": "object",
            "properties": {
                "cik": _CIK,
                "accession_number": _ACCESSION,
                "primary_document": {
                    "type": "string",
                    "description": "Primary document filename hint from list_filings"
                }
            },
            "required": ["cik", "accession_number"]
        }
    },
    "fetch_document": {
        "name": "fetch_document",
        "description": """Download one document of a filing to disk. Returns path for Read/Grep.""",
        "inputSchema": {
            "type": "object",
            "properties": {
                "cik": _CIK,
                "accession_number": _ACCESSION,
                "filename": {
                    "type": "string",
                    "description": "Document filename inside the filing archive"
                }
            },
            "required": ["cik", "accession_number", "filename"]
        }
    },
    "get_13f_holdings": {
        "name": "get_13f_holdings",
        "description": """Holdings reported in a 13F-HR filing.

get_13f_holdings("1067983", "0000950123-24-005617", top_n=10) → top 10 positions by value
""",
        "inputSchema": {
            "type": "object",
            "properties": {
                "cik": _CIK,
                "accession_number": _ACCESSION,
                "top_n": {
                    "type": "integer",
                    "description": "Only the N largest positions by value. Omit for all."
                }
            },
            "required": ["cik", "accession_number"]
        }
    },
    "list_managers": {
        "name": "list_managers",
        "description": """List 13F filers (institutional managers) from the latest quarterly master index.""",
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Name fragment or CIK to filter by"
                },
                "limit": {
                    "type": "integer",
                    "description": "Maximum managers to return",
                    "default": 25
                },
                "force_refresh": {
                    "type": "boolean",
                    "description": "Rebuild the directory even if cached",
                    "default": False
                }
            },
            "required": []
        }
    },
    "get_filing_text": {
        "name": "get_filing_text",
        "description": """Plain text of a filing, cached on disk. Returns path for Read/Grep.

Use force_refresh if the cached text looks wrong; invalidate only drops the cache entry.
""",
        "inputSchema": {
            "type": "object",
            "properties": {
                "cik": _CIK,
                "accession_number": _ACCESSION,
                "primary_document": {
                    "type": "string",
                    "description": "Primary document filename hint from list_filings"
                },
                "force_refresh": {
                    "type": "boolean",
                    "description": "Re-derive the text even if cached",
                    "default": False
                },
                "invalidate": {
                    "type": "boolean",
                    "description": "Drop the cached text without re-deriving it",
                    "default": False
                }
            },
            "required": ["cik", "accession_number"]
        }
    }
}
