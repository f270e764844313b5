"""club_reporter.shared

Shared utilities used by both the club report and the series report.
Includes the exception taxonomy, RunCounters, the CSV write helper, and
run-report support.
"""

from __future__ import annotations

import csv
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Sequence

import click

from club_reporter.normalize import parse_datetime

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ClubReportError(Exception):
    """Base class for fatal reporting errors."""


class InputNotFoundError(ClubReportError):
    """Raised when the contacts export does not exist."""


class ContactsParseError(ClubReportError):
    """Raised when the contacts export is not valid CSV or has a bad row shape."""

    def __init__(self, message: str, line_num: int | None = None) -> None:
        if line_num is not None:
            message = f"line {line_num}: {message}"
        super().__init__(message)
        self.line_num = line_num


class RemoteApiError(ClubReportError):
    """Raised when a Sqorz request fails or returns an unexpected shape."""


# ---------------------------------------------------------------------------
# CLI helpers
# ---------------------------------------------------------------------------

def configure_logging(level: str) -> None:
    """Configure console logging for library modules."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )


def parse_as_of_option(
    ctx: click.Context,
    param: click.Parameter,
    value: str | None,
) -> datetime | None:
    """click callback turning --as-of into a datetime (None means now)."""
    if value is None:
        return None
    dt = parse_datetime(value)
    if dt is None:
        raise click.BadParameter(f"cannot parse {value!r} as a date")
    return dt


# ---------------------------------------------------------------------------
# RunCounters
# ---------------------------------------------------------------------------

@dataclass
class RunCounters:
    # Contacts
    rows_read: int = 0
    contacts: int = 0
    active_contacts: int = 0
    # Remote
    events_fetched: int = 0
    series_classes: int = 0
    series_riders: int = 0
    # Output
    files_written: int = 0
    files_skipped: int = 0
    warnings: list[str] = field(default_factory=list)

    def record_write(self, path: Path | None) -> None:
        if path is None:
            self.files_skipped += 1
        else:
            self.files_written += 1

    def to_dict(self) -> dict[str, Any]:
        d = {k: v for k, v in self.__dict__.items() if k != "warnings"}
        d["warnings"] = self.warnings[:50]
        return d


# ---------------------------------------------------------------------------
# CSV writer
# ---------------------------------------------------------------------------

def write_csv(path: Path, header: Sequence[str], rows: Iterable[Sequence[Any]]) -> Path:
    """Write header + rows to path, replacing any existing file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.writer(fh)
        writer.writerow(header)
        for row in rows:
            writer.writerow(row)
    return path


# ---------------------------------------------------------------------------
# Report writer
# ---------------------------------------------------------------------------

def build_run_report(mode: str, counters: RunCounters) -> str:
    lines = [
        f"=== {mode} Run Report ===",
        "",
        "--- Contacts ---",
        f"rows_read        : {counters.rows_read}",
        f"contacts         : {counters.contacts}",
        f"active_contacts  : {counters.active_contacts}",
        "",
        "--- Remote ---",
        f"events_fetched   : {counters.events_fetched}",
        f"series_classes   : {counters.series_classes}",
        f"series_riders    : {counters.series_riders}",
        "",
        "--- Output ---",
        f"files_written    : {counters.files_written}",
        f"files_skipped    : {counters.files_skipped}",
    ]
    if counters.warnings:
        lines += ["", "--- Warnings (first 10) ---"]
        lines += [f"  {w}" for w in counters.warnings[:10]]
    return "\n".join(lines)


def write_run_report(
    run_id: str,
    started_at: str,
    mode: str,
    source_paths: dict[str, str],
    counters: RunCounters,
    report_dir: Path,
) -> Path:
    report = {
        "run_id": run_id,
        "mode": mode,
        "started_at": started_at,
        "finished_at": datetime.utcnow().isoformat(),
        **source_paths,
        "counters": counters.to_dict(),
    }
    report_path = report_dir / f"{run_id}.json"
    report_path.parent.mkdir(parents=True, exist_ok=True)
    report_path.write_text(json.dumps(report, indent=2, default=str))
    return report_path
