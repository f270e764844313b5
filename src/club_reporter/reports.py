"""club_reporter.reports

CSV report writers.  Each report declares its header and row mapper once in
a ReportSpec; nothing is derived from field names at write time.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Generic, Iterable, Sequence, TypeVar

from club_reporter.aggregate import (
    Coach,
    ContactTotals,
    CurrentExpired,
    FirstAider,
    Official,
)
from club_reporter.contacts import Contact
from club_reporter.shared import write_csv
from club_reporter.sqorz import ClubEvent, SeriesResult

T = TypeVar("T")


@dataclass(frozen=True)
class ReportSpec(Generic[T]):
    header: tuple[str, ...]
    row: Callable[[T], Sequence[Any]]

    def write(self, path: Path, items: Iterable[T]) -> Path:
        return write_csv(path, self.header, (self.row(item) for item in items))


# ---------------------------------------------------------------------------
# Report specs
# ---------------------------------------------------------------------------

FIRST_AID_REPORT: ReportSpec[FirstAider] = ReportSpec(
    header=("Name", "Expiry", "Licensed"),
    row=lambda f: (f.name, f.expiry, f.licensed),
)

COACH_REPORT: ReportSpec[Coach] = ReportSpec(
    header=("Name", "Type", "Expiry", "Licensed"),
    row=lambda c: (c.name, c.type, c.expiry, c.licensed),
)

OFFICIAL_REPORT: ReportSpec[Official] = ReportSpec(
    header=("Name", "Type", "Expiry", "Licensed"),
    row=lambda o: (o.name, o.type, o.expiry, o.licensed),
)

SPROCKET_REPORT: ReportSpec[Contact] = ReportSpec(
    header=("Name", "DoB"),
    row=lambda c: (c.name, c.date_of_birth or ""),
)

EVENT_REPORT: ReportSpec[ClubEvent] = ReportSpec(
    header=("Name", "Date", "Total Entries", "Total Classes", "Total Races"),
    row=lambda e: (e.name, e.date, e.entries, e.classes_count, e.complete_races),
)

BREAKDOWN_REPORT: ReportSpec[tuple[str, int]] = ReportSpec(
    header=("Membership Type", "Count"),
    row=lambda item: item,
)

SERIES_REPORT: ReportSpec[tuple[str, str, str, int]] = ReportSpec(
    header=("Class", "First Name", "Last Name", "Rank"),
    row=lambda item: item,
)


# ---------------------------------------------------------------------------
# Writers
# ---------------------------------------------------------------------------

def write_contact_totals(output_dir: Path, totals: ContactTotals) -> Path:
    rows = [
        ("Active Members (Race + Volunteer)", totals.total_active),
        ("Expired Members", totals.total_expired),
        ("Active Riding Members", totals.total_riding),
        ("Active Volunteer Members", totals.total_volunteers),
        ("Active Riding + Volunteer Members", totals.total_riding_volunteers),
        ("First Aiders", totals.total_first_aid),
        ("First Aiders Expired", totals.total_expired_first_aid),
        ("Coaches", totals.total_coaches),
        ("Coaches Expired", totals.total_expired_coaches),
        ("Officials", totals.total_officials),
        ("Officials Expired", totals.total_officials_expired),
    ]
    return write_csv(output_dir / "member-totals.csv", ("Type", "Total"), rows)


def write_member_level_breakdown(output_dir: Path, breakdown: dict[str, int]) -> Path:
    return BREAKDOWN_REPORT.write(
        output_dir / "membership-breakdown.csv", breakdown.items()
    )


def write_sprocket_graduates(output_dir: Path, sprockets: list[Contact]) -> Path:
    return SPROCKET_REPORT.write(output_dir / "grad-sprockets.csv", sprockets)


def write_current_expired(
    output_dir: Path,
    items: CurrentExpired[T],
    prefix: str,
    spec: ReportSpec[T],
) -> dict[str, Path | None]:
    """Write {prefix}-current.csv and {prefix}-expired.csv.

    An empty bucket is skipped, not written as a header-only file.
    """
    written: dict[str, Path | None] = {}
    for bucket, rows in (("current", items.current), ("expired", items.expired)):
        if rows:
            written[bucket] = spec.write(output_dir / f"{prefix}-{bucket}.csv", rows)
        else:
            written[bucket] = None
    return written


def write_event_breakdown(output_dir: Path, events: list[ClubEvent]) -> Path:
    return EVENT_REPORT.write(output_dir / "event-breakdown.csv", events)


def write_series_breakdown(output_dir: Path, series: SeriesResult) -> Path:
    rows = [
        (c.class_name, rider.first_name, rider.last_name, rider.rank)
        for c in series.classes
        for rider in c.qualified_riders
    ]
    return SERIES_REPORT.write(output_dir / f"series-{series.id}.csv", rows)
