"""
Quarterly master index parsing

master.idx is pipe-delimited after a free-text header:

    CIK|Company Name|Form Type|Date Filed|Filename
    --------------------------------------------------------------------------------
    1067983|BERKSHIRE HATHAWAY INC|13F-HR|2024-05-15|edgar/data/1067983/...txt
"""
from datetime import date
from typing import Optional

from .domain import Manager
from .urls import pad_cik

# 13F-NT is a notice filed instead of holdings; those managers still belong in the directory.
THIRTEEN_F_FORMS = frozenset({"13F-HR", "13F-HR/A", "13F-NT", "13F-NT/A"})

_HEADER_PREFIXES = ("CIK|", "Description", "----")


def parse_managers(data: bytes) -> list[Manager]:
    """
    Collect 13F filers from a master index.

    A CIK listed on several qualifying lines keeps the name from the last one.
    Malformed lines are skipped.
    """
    text = data.decode("utf-8", errors="replace")
    names_by_cik: dict[str, str] = {}

    for line in text.splitlines():
        if line.startswith(_HEADER_PREFIXES):
            continue
        parts = line.split("|")
        if len(parts) < 5:
            continue

        cik, name, form = (p.strip() for p in parts[:3])
        if form not in THIRTEEN_F_FORMS:
            continue
        if not cik or not name or not (cik.isascii() and cik.isdigit()):
            continue
        names_by_cik[pad_cik(cik)] = name

    managers = [Manager(cik=cik, name=name) for cik, name in names_by_cik.items()]
    managers.sort(key=lambda m: m.name.casefold())
    return managers


def current_quarter(today: Optional[date] = None) -> tuple[int, int]:
    today = today or date.today()
    return today.year, (today.month - 1) // 3 + 1


def previous_quarter(year: int, quarter: int) -> tuple[int, int]:
    if quarter > 1:
        return year, quarter - 1
    return year - 1, 4
