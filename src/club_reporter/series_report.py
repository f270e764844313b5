"""club_reporter.series_report

CLI entrypoint for a Sqorz series leaderboard.

Usage:
    python -m club_reporter.series_report 12345 --out-dir ./out

Writes <out-dir>/series-<id>.csv with the qualified riders of every class.
"""

from __future__ import annotations

import re
import sys
import uuid
from datetime import datetime
from pathlib import Path

import click

from club_reporter.reports import write_series_breakdown
from club_reporter.shared import (
    LOG_LEVELS,
    ClubReportError,
    RunCounters,
    build_run_report,
    configure_logging,
    write_run_report,
)
from club_reporter.sqorz import (
    DEFAULT_BASE_URL,
    SqorzClient,
    SqorzConfig,
    get_series_leaders,
)

MODE = "series_report"

# Series ids become a URL path segment and part of the output filename.
_SERIES_ID_RE = re.compile(r"[A-Za-z0-9_-]+")


def parse_series_id(ctx: click.Context, param: click.Parameter, value: str) -> str:
    """click callback rejecting series ids that are not a single path-safe token."""
    if not _SERIES_ID_RE.fullmatch(value):
        raise click.BadParameter(f"{value!r} is not a valid series id")
    return value


def run_series_report(
    run_id: str,
    series_id: str,
    out_dir: Path,
    counters: RunCounters,
    client: SqorzClient,
) -> Path:
    click.echo(f"[{run_id}] Loading series results for {series_id}")
    results = get_series_leaders(client, series_id)
    counters.series_classes = len(results.classes)
    counters.series_riders = sum(len(c.qualified_riders) for c in results.classes)
    click.echo(
        f"[{run_id}]   > Found series: {results.name} with {len(results.classes)} classes"
    )

    out_dir.mkdir(parents=True, exist_ok=True)
    path = write_series_breakdown(out_dir, results)
    counters.record_write(path)
    return path


@click.command()
@click.argument("series_id", callback=parse_series_id)
@click.option("--out-dir", default="./out", show_default=True, type=click.Path(file_okay=False))
@click.option("--sqorz-base-url", default=DEFAULT_BASE_URL, show_default=True)
@click.option("--request-timeout", default=30, type=int, show_default=True, help="Sqorz request timeout in seconds")
@click.option("--run-id", default=None, help="Override UUID for log correlation")
@click.option("--run-report-dir", default=None, type=click.Path(file_okay=False), help="Write a JSON run report into this directory")
@click.option("--log-level", default="WARNING", type=click.Choice(LOG_LEVELS, case_sensitive=False), show_default=True)
def main(
    series_id: str,
    out_dir: str,
    sqorz_base_url: str,
    request_timeout: int,
    run_id: str | None,
    run_report_dir: str | None,
    log_level: str,
) -> None:
    """Write the qualified-rider leaderboard for SERIES_ID."""
    configure_logging(log_level)
    run_id = run_id or str(uuid.uuid4())
    started_at = datetime.utcnow().isoformat()
    counters = RunCounters()
    client = SqorzClient(SqorzConfig(base_url=sqorz_base_url, timeout=request_timeout))

    try:
        path = run_series_report(run_id, series_id, Path(out_dir), counters, client)
    except ClubReportError as e:
        click.echo(f"[{run_id}] FATAL: {e}", err=True)
        sys.exit(1)
    finally:
        client.close()

    click.echo(f"[{run_id}] Wrote {path}")
    click.echo(build_run_report(MODE, counters))
    if run_report_dir:
        report_path = write_run_report(
            run_id,
            started_at,
            MODE,
            {"series_id": series_id, "output_path": str(path)},
            counters,
            Path(run_report_dir),
        )
        click.echo(f"[{run_id}] Run report: {report_path}")
    click.echo(f"[{run_id}] Done")


if __name__ == "__main__":
    main()
