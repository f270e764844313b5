"""Unit tests for the Sqorz client.

No live HTTP requests are made; the requests.Session is a MagicMock.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from club_reporter.shared import RemoteApiError
from club_reporter.sqorz import (
    STATUS_QUALIFIED,
    SqorzClient,
    SqorzConfig,
    get_club_events,
    get_series_leaders,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_mock_session(payload=None, status_code: int = 200) -> MagicMock:
    session = MagicMock()
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload
    session.get.return_value = resp
    return session


def _client(session: MagicMock) -> SqorzClient:
    return SqorzClient(SqorzConfig(base_url="https://sqorz.test/json/", timeout=5), session=session)


def _event(name: str, date: str) -> dict:
    return {
        "eventName": name,
        "eventDate": date,
        "entered": 100,
        "registered": 90,
        "peopleCount": {"entered": 80, "registered": 75},
        "completeRaces": 30,
        "enabledClasses": 12,
    }


def _rider(first: str, rank: int, status: int = STATUS_QUALIFIED) -> dict:
    return {
        "firstName": first,
        "lastName": f"{first}son",
        "seriesQualificationStatus": status,
        "seriesRank": rank,
    }


# ---------------------------------------------------------------------------
# SqorzClient
# ---------------------------------------------------------------------------

class TestSqorzClient:
    def test_sets_fixed_headers(self):
        session = _make_mock_session({})
        _client(session)
        headers = session.headers.update.call_args[0][0]
        assert headers["Accept"] == "application/json"
        assert "club-reporter" in headers["User-Agent"]

    def test_builds_url_and_timeout(self):
        session = _make_mock_session({"ok": True})
        assert _client(session).get_json("/org/abc") == {"ok": True}
        session.get.assert_called_once_with("https://sqorz.test/json/org/abc", timeout=5)

    def test_transport_error_raises(self):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("boom")
        with pytest.raises(RemoteApiError, match="failed"):
            _client(session).get_json("/org/abc")

    def test_http_error_raises(self):
        with pytest.raises(RemoteApiError, match="status 404"):
            _client(_make_mock_session(status_code=404)).get_json("/org/abc")

    def test_invalid_json_raises(self):
        session = _make_mock_session()
        session.get.return_value.json.side_effect = ValueError("no json")
        with pytest.raises(RemoteApiError, match="invalid JSON"):
            _client(session).get_json("/org/abc")


# ---------------------------------------------------------------------------
# get_club_events
# ---------------------------------------------------------------------------

class TestGetClubEvents:
    def test_filters_year_and_sorts(self):
        payload = {"events": [
            _event("Round 3", "2024-09-01T08:00:00"),
            _event("Last Year", "2023-12-01T08:00:00"),
            _event("Round 1", "2024-02-03T08:00:00"),
        ]}
        events = get_club_events(_client(_make_mock_session(payload)), "abc", 2024)
        assert [e.name for e in events] == ["Round 1", "Round 3"]
        first = events[0]
        assert first.entries == 100
        assert first.registered == 90
        assert first.people == 80
        assert first.people_registered == 75
        assert first.classes_count == 12
        assert first.complete_races == 30

    def test_no_events(self):
        assert get_club_events(_client(_make_mock_session({"events": []})), "abc", 2024) == []

    def test_unexpected_shape_raises(self):
        with pytest.raises(RemoteApiError, match="unexpected event payload"):
            get_club_events(_client(_make_mock_session({"nope": []})), "abc", 2024)


# ---------------------------------------------------------------------------
# get_series_leaders
# ---------------------------------------------------------------------------

class TestGetSeriesLeaders:
    def _payload(self, classes: list[dict]) -> dict:
        return {
            "seriesId": "777",
            "seriesDescription": {"seriesName": "Winter Series"},
            "seriesRankClasses": classes,
        }

    def test_ranked_class_top_eight_reranked(self):
        riders = [_rider(f"R{rank}", rank) for rank in range(10, 0, -1)]
        riders.append(_rider("Semi", 2, status=2))
        riders = [r for r in riders if r["firstName"] != "R3"]
        payload = self._payload([{
            "className": "Boys 10",
            "participationOnly": False,
            "seriesRankCompetitors": riders,
        }])
        result = get_series_leaders(_client(_make_mock_session(payload)), "777")
        assert result.id == "777"
        assert result.name == "Winter Series"
        qualified = result.classes[0].qualified_riders
        assert [r.first_name for r in qualified] == ["R1", "R2", "R4", "R5", "R6", "R7", "R8"]
        assert [r.rank for r in qualified] == [1, 2, 3, 4, 5, 6, 7]

    def test_participation_only_keeps_original_rank(self):
        payload = self._payload([{
            "className": "Sprockets",
            "participationOnly": True,
            "seriesRankCompetitors": [_rider("B", 12), _rider("A", 9), _rider("C", 1, status=1)],
        }])
        result = get_series_leaders(_client(_make_mock_session(payload)), "777")
        qualified = result.classes[0].qualified_riders
        assert [(r.first_name, r.last_name, r.rank) for r in qualified] == [
            ("A", "Ason", 9),
            ("B", "Bson", 12),
        ]

    def test_unexpected_shape_raises(self):
        with pytest.raises(RemoteApiError, match="unexpected series payload"):
            get_series_leaders(_client(_make_mock_session({"seriesRankClasses": []})), "777")
