"""club_reporter.club_report

CLI entrypoint for the yearly membership report.

Usage:
    python -m club_reporter.club_report \\
        "exports/tidyhq-contacts.csv" my-club 2024 \\
        --out-dir ./out \\
        --as-of 2024-12-31

Writes into <out-dir>/<year>/, which is wiped first:
  member-totals.csv, membership-breakdown.csv, grad-sprockets.csv,
  first-aid-{current,expired}.csv, coaches-{current,expired}.csv,
  officials-{current,expired}.csv, event-breakdown.csv
"""

from __future__ import annotations

import shutil
import sys
import uuid
from datetime import datetime
from pathlib import Path

import click

from club_reporter.aggregate import (
    get_club_coaches,
    get_club_first_aiders,
    get_club_officials,
    get_member_level_breakdown,
    get_sprocket_graduates,
    get_totals,
)
from club_reporter.contacts import read_contact_rows, reconcile_contacts
from club_reporter.reports import (
    COACH_REPORT,
    FIRST_AID_REPORT,
    OFFICIAL_REPORT,
    write_contact_totals,
    write_current_expired,
    write_event_breakdown,
    write_member_level_breakdown,
    write_sprocket_graduates,
)
from club_reporter.shared import (
    LOG_LEVELS,
    ClubReportError,
    RunCounters,
    build_run_report,
    configure_logging,
    parse_as_of_option,
    write_run_report,
)
from club_reporter.sqorz import (
    DEFAULT_BASE_URL,
    ClubEvent,
    SqorzClient,
    SqorzConfig,
    get_club_events,
)

MODE = "club_report"


def prepare_output_dir(base_dir: Path, year: int) -> Path:
    """Return <base_dir>/<year>, recreated empty."""
    output_dir = base_dir / str(year)
    if output_dir.exists():
        shutil.rmtree(output_dir)
    output_dir.mkdir(parents=True)
    return output_dir


def run_club_report(
    run_id: str,
    contacts_path: Path,
    org: str,
    reporting_year: int,
    out_dir: Path,
    counters: RunCounters,
    client: SqorzClient | None,
    as_of: datetime | None = None,
) -> Path:
    """Parse contacts, aggregate, fetch events and write every report.

    client=None skips the remote fetch; event-breakdown.csv is then written
    with headers only.  Returns the year output directory.
    """
    as_of = as_of or datetime.now()

    # ------------------------------------------------------------------ #
    # Contacts                                                           #
    # ------------------------------------------------------------------ #
    rows = read_contact_rows(contacts_path)
    counters.rows_read = len(rows)
    contacts = reconcile_contacts(rows, as_of=as_of)
    counters.contacts = len(contacts)
    counters.active_contacts = sum(1 for c in contacts.values() if c.active)
    click.echo(f"[{run_id}] {counters.contacts} contacts found ({counters.rows_read} rows)")

    totals = get_totals(contacts, reporting_year, as_of=as_of)
    breakdown = get_member_level_breakdown(contacts)
    sprockets = get_sprocket_graduates(contacts, reporting_year)
    first_aiders = get_club_first_aiders(contacts)
    coaches = get_club_coaches(contacts)
    officials = get_club_officials(contacts)

    click.echo(
        f"[{run_id}] Active={totals.total_active} Expired={totals.total_expired} "
        f"Riding={totals.total_riding} Volunteers={totals.total_volunteers} "
        f"Riding+Volunteer={totals.total_riding_volunteers}"
    )
    click.echo(f"[{run_id}] {len(breakdown)} membership levels, {len(sprockets)} sprocket graduates")

    # ------------------------------------------------------------------ #
    # Events                                                             #
    # ------------------------------------------------------------------ #
    events: list[ClubEvent] = []
    if client is None:
        counters.warnings.append("event fetch skipped")
    else:
        click.echo(f"[{run_id}] Fetching {org} events for {reporting_year}...")
        events = get_club_events(client, org, reporting_year)
        counters.events_fetched = len(events)
        click.echo(f"[{run_id}] {len(events)} club events found")

    # ------------------------------------------------------------------ #
    # Output                                                             #
    # ------------------------------------------------------------------ #
    output_dir = prepare_output_dir(out_dir, reporting_year)
    click.echo(f"[{run_id}] Writing CSVs to {output_dir}")

    counters.record_write(write_contact_totals(output_dir, totals))
    for prefix, items, spec in (
        ("first-aid", first_aiders, FIRST_AID_REPORT),
        ("coaches", coaches, COACH_REPORT),
        ("officials", officials, OFFICIAL_REPORT),
    ):
        for path in write_current_expired(output_dir, items, prefix, spec).values():
            counters.record_write(path)
    counters.record_write(write_member_level_breakdown(output_dir, breakdown))
    counters.record_write(write_sprocket_graduates(output_dir, sprockets))
    counters.record_write(write_event_breakdown(output_dir, events))

    return output_dir


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

@click.command()
@click.argument("contacts_file", type=click.Path(dir_okay=False))
@click.argument("org")
@click.argument("year", type=int)
@click.option("--out-dir", default="./out", show_default=True, type=click.Path(file_okay=False), help="Base output directory; reports go in <out-dir>/<year>")
@click.option("--as-of", default=None, callback=parse_as_of_option, help="Evaluate credential expiry as of this date (default: now)")
@click.option("--skip-events", is_flag=True, default=False, help="Do not call Sqorz; write an empty event breakdown")
@click.option("--sqorz-base-url", default=DEFAULT_BASE_URL, show_default=True)
@click.option("--request-timeout", default=30, type=int, show_default=True, help="Sqorz request timeout in seconds")
@click.option("--run-id", default=None, help="Override UUID for log correlation")
@click.option("--run-report-dir", default=None, type=click.Path(file_okay=False), help="Write a JSON run report into this directory")
@click.option("--log-level", default="WARNING", type=click.Choice(LOG_LEVELS, case_sensitive=False), show_default=True)
def main(
    contacts_file: str,
    org: str,
    year: int,
    out_dir: str,
    as_of: datetime | None,
    skip_events: bool,
    sqorz_base_url: str,
    request_timeout: int,
    run_id: str | None,
    run_report_dir: str | None,
    log_level: str,
) -> None:
    """Generate the membership and event report set for ORG in YEAR."""
    configure_logging(log_level)
    run_id = run_id or str(uuid.uuid4())
    started_at = datetime.utcnow().isoformat()
    counters = RunCounters()

    click.echo(f"[{run_id}] Generating report for: {org} ({year})")
    click.echo(f"[{run_id}]   - Using {contacts_file}")

    client = None
    if not skip_events:
        client = SqorzClient(SqorzConfig(base_url=sqorz_base_url, timeout=request_timeout))

    try:
        output_dir = run_club_report(
            run_id,
            Path(contacts_file),
            org,
            year,
            Path(out_dir),
            counters,
            client,
            as_of=as_of,
        )
    except ClubReportError as e:
        click.echo(f"[{run_id}] FATAL: {e}", err=True)
        sys.exit(1)
    finally:
        if client is not None:
            client.close()

    click.echo(build_run_report(MODE, counters))
    if run_report_dir:
        report_path = write_run_report(
            run_id,
            started_at,
            MODE,
            {"contacts_path": contacts_file, "output_dir": str(output_dir)},
            counters,
            Path(run_report_dir),
        )
        click.echo(f"[{run_id}] Run report: {report_path}")
    click.echo(f"[{run_id}] Done")


if __name__ == "__main__":
    main()
