"""Normalization functions for TidyHQ contact exports and Sqorz payloads.

All functions accept str | None and return the appropriate type or None.
Expiry checks take an explicit ``as_of`` timestamp so report output does
not depend on when the job happens to run.
"""

from __future__ import annotations

import re
from datetime import datetime

# Date-only formats seen in TidyHQ exports.
_DATE_FORMATS = (
    "%Y-%m-%d",
    "%d/%m/%Y",
    "%d-%m-%Y",
    "%d %b %Y",
    "%d %B %Y",
)
_DATETIME_FORMATS = (
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M",
)


# ---------------------------------------------------------------------------
# Rule 1: trim
# ---------------------------------------------------------------------------

def trim(value: str | None) -> str | None:
    """Strip leading/trailing whitespace; treat empty string as None."""
    if value is None:
        return None
    v = value.strip()
    return v if v else None


# ---------------------------------------------------------------------------
# Rule 2: parse_datetime / parse_year
# ---------------------------------------------------------------------------

def parse_datetime(value: str | None) -> datetime | None:
    """Parse a date or timestamp string into a naive datetime.

    Date-only values resolve to midnight.  A trailing 'Z' or UTC offset is
    dropped.  Returns None when nothing matches.
    """
    v = trim(value)
    if v is None:
        return None
    if ":" in v:
        v = re.sub(r"(Z|[+-]\d{2}:?\d{2})$", "", v)
        v = re.sub(r"\.\d+$", "", v)
    for fmt in _DATETIME_FORMATS:
        try:
            return datetime.strptime(v, fmt)
        except ValueError:
            continue
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(v, fmt)
        except ValueError:
            continue
    return None


def parse_year(value: str | None) -> int | None:
    """Return the year of a parsed date, or None."""
    dt = parse_datetime(value)
    return dt.year if dt is not None else None


# ---------------------------------------------------------------------------
# Rule 3: expiry checks
# ---------------------------------------------------------------------------

def is_expired(value: str | None, as_of: datetime) -> bool:
    """True when value parses and falls strictly before as_of.

    Blank or unparseable expiries are never expired.
    """
    dt = parse_datetime(value)
    if dt is None:
        return False
    return dt < as_of


def expired_in_year(value: str | None, reporting_year: int, as_of: datetime) -> bool:
    """True when value is expired as of as_of and falls within reporting_year."""
    dt = parse_datetime(value)
    if dt is None:
        return False
    return dt < as_of and dt.year == reporting_year


# ---------------------------------------------------------------------------
# Helper: yes_no
# ---------------------------------------------------------------------------

def yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"
