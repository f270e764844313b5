"""club_reporter.sqorz

Thin client for the Sqorz public JSON API.

  GET /org/{org}          -> club event list
  GET /series/{series_id} -> series rankings per class

The client is built explicitly and passed to the fetch functions; there is
no module-level session.  No retries: any transport failure, HTTP error or
unexpected payload shape raises RemoteApiError.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import requests

from club_reporter.normalize import parse_year
from club_reporter.shared import RemoteApiError

log = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://our.sqorz.com/json"
DEFAULT_USER_AGENT = "club-reporter/1.0.0 (https://github.com/alexgisby/bmx_club_reporter)"

# seriesQualificationStatus value for a qualified rider
STATUS_QUALIFIED = 3

# Ranked classes only report the top eight riders.
MAX_RANKED_RIDERS = 8


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SqorzConfig:
    base_url: str = DEFAULT_BASE_URL
    user_agent: str = DEFAULT_USER_AGENT
    timeout: int = 30


class SqorzClient:
    """requests.Session wrapper with fixed Accept / User-Agent headers."""

    def __init__(
        self,
        config: SqorzConfig | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.config = config or SqorzConfig()
        self._session = session or requests.Session()
        self._session.headers.update({
            "Accept": "application/json",
            "User-Agent": self.config.user_agent,
        })

    def get_json(self, path: str) -> Any:
        url = f"{self.config.base_url.rstrip('/')}/{path.lstrip('/')}"
        log.info("GET %s", url)
        try:
            resp = self._session.get(url, timeout=self.config.timeout)
        except requests.RequestException as exc:
            raise RemoteApiError(f"request to {url} failed: {exc}") from exc
        if resp.status_code >= 400:
            raise RemoteApiError(f"GET {url} returned status {resp.status_code}")
        try:
            return resp.json()
        except ValueError as exc:
            raise RemoteApiError(f"GET {url} returned invalid JSON: {exc}") from exc

    def close(self) -> None:
        self._session.close()


# ---------------------------------------------------------------------------
# Club events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ClubEvent:
    name: str
    date: str
    entries: int
    registered: int
    people: int
    people_registered: int
    classes_count: int
    complete_races: int


def _map_event(raw: dict[str, Any]) -> ClubEvent:
    people = raw.get("peopleCount") or {}
    return ClubEvent(
        name=raw["eventName"],
        date=raw["eventDate"],
        entries=raw["entered"],
        registered=raw["registered"],
        people=people.get("entered", 0),
        people_registered=people.get("registered", 0),
        classes_count=raw["enabledClasses"],
        complete_races=raw["completeRaces"],
    )


def get_club_events(client: SqorzClient, org: str, reporting_year: int) -> list[ClubEvent]:
    """Events run by org within reporting_year, oldest first."""
    payload = client.get_json(f"/org/{org}")
    try:
        events = [
            _map_event(raw)
            for raw in payload["events"]
            if parse_year(raw["eventDate"]) == reporting_year
        ]
    except (KeyError, TypeError, AttributeError) as exc:
        raise RemoteApiError(f"unexpected event payload for org {org!r}: {exc!r}") from exc
    return sorted(events, key=lambda e: e.date)


# ---------------------------------------------------------------------------
# Series leaders
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SeriesRider:
    first_name: str
    last_name: str
    rank: int


@dataclass
class SeriesClassResult:
    class_name: str
    qualified_riders: list[SeriesRider] = field(default_factory=list)


@dataclass
class SeriesResult:
    id: str
    name: str
    classes: list[SeriesClassResult] = field(default_factory=list)


def _qualified_riders(raw_class: dict[str, Any]) -> list[SeriesRider]:
    """Qualified riders in rank order.

    Ranked classes keep the top MAX_RANKED_RIDERS and are re-ranked 1..N;
    participation-only classes keep every qualified rider at their original
    rank.
    """
    participation_only = bool(raw_class.get("participationOnly"))
    qualified = sorted(
        (
            rider
            for rider in raw_class["seriesRankCompetitors"]
            if rider["seriesQualificationStatus"] == STATUS_QUALIFIED
            and (participation_only or rider["seriesRank"] <= MAX_RANKED_RIDERS)
        ),
        key=lambda rider: rider["seriesRank"],
    )
    return [
        SeriesRider(
            first_name=rider["firstName"],
            last_name=rider["lastName"],
            rank=rider["seriesRank"] if participation_only else i,
        )
        for i, rider in enumerate(qualified, start=1)
    ]


def get_series_leaders(client: SqorzClient, series_id: str) -> SeriesResult:
    payload = client.get_json(f"/series/{series_id}")
    try:
        return SeriesResult(
            id=series_id,
            name=payload["seriesDescription"]["seriesName"],
            classes=[
                SeriesClassResult(
                    class_name=raw_class["className"],
                    qualified_riders=_qualified_riders(raw_class),
                )
                for raw_class in payload["seriesRankClasses"]
            ],
        )
    except (KeyError, TypeError, AttributeError) as exc:
        raise RemoteApiError(f"unexpected series payload for {series_id!r}: {exc!r}") from exc
