"""Unit tests for club_reporter.normalize."""

import pytest
from datetime import datetime

from club_reporter.normalize import (
    trim,
    parse_datetime,
    parse_year,
    is_expired,
    expired_in_year,
    yes_no,
)

AS_OF = datetime(2024, 6, 30, 12, 0, 0)


# ---------------------------------------------------------------------------
# trim
# ---------------------------------------------------------------------------

class TestTrim:
    def test_strips_whitespace(self):
        assert trim("  hello  ") == "hello"

    def test_empty_string_returns_none(self):
        assert trim("") is None

    def test_whitespace_only_returns_none(self):
        assert trim("   ") is None

    def test_none_returns_none(self):
        assert trim(None) is None


# ---------------------------------------------------------------------------
# parse_datetime / parse_year
# ---------------------------------------------------------------------------

class TestParseDatetime:
    def test_iso_date(self):
        assert parse_datetime("2024-03-05") == datetime(2024, 3, 5)

    def test_day_first_slash(self):
        assert parse_datetime("05/03/2024") == datetime(2024, 3, 5)

    def test_day_month_name(self):
        assert parse_datetime("5 Mar 2024") == datetime(2024, 3, 5)

    def test_iso_timestamp(self):
        assert parse_datetime("2024-03-05T09:30:00") == datetime(2024, 3, 5, 9, 30)

    def test_iso_timestamp_with_zone_and_fraction(self):
        assert parse_datetime("2024-03-05T09:30:00.000Z") == datetime(2024, 3, 5, 9, 30)

    def test_garbage_returns_none(self):
        assert parse_datetime("not a date") is None

    def test_blank_returns_none(self):
        assert parse_datetime("  ") is None
        assert parse_datetime(None) is None


def test_parse_year():
    assert parse_year("2017-08-01") == 2017
    assert parse_year("") is None


# ---------------------------------------------------------------------------
# is_expired / expired_in_year
# ---------------------------------------------------------------------------

class TestIsExpired:
    def test_past_is_expired(self):
        assert is_expired("2020-01-01", AS_OF) is True

    def test_future_is_not_expired(self):
        assert is_expired("2099-01-01", AS_OF) is False

    def test_same_day_midnight_is_expired(self):
        assert is_expired("2024-06-30", AS_OF) is True

    def test_unparseable_is_not_expired(self):
        assert is_expired("whenever", AS_OF) is False
        assert is_expired("", AS_OF) is False


class TestExpiredInYear:
    def test_expired_within_year(self):
        assert expired_in_year("2024-02-01", 2024, AS_OF) is True

    def test_expired_previous_year(self):
        assert expired_in_year("2023-02-01", 2024, AS_OF) is False

    def test_future_within_year(self):
        assert expired_in_year("2024-11-01", 2024, AS_OF) is False

    def test_unparseable(self):
        assert expired_in_year("", 2024, AS_OF) is False


@pytest.mark.parametrize("flag, expected", [(True, "Yes"), (False, "No")])
def test_yes_no(flag, expected):
    assert yes_no(flag) == expected
