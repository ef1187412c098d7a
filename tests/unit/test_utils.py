"""
Unit tests for core.utils helpers.
"""

import pytest
from datetime import datetime, timezone

from core.utils import add_cache_buster, item_url, parse_retry_after

NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class TestParseRetryAfter:
    """Test suite for parse_retry_after"""

    @pytest.mark.parametrize("value,expected", [("5", 5.0), ("1.5", 1.5), (" 2 ", 2.0), ("-3", 0.0)])
    def test_delta_seconds(self, value, expected):
        assert parse_retry_after(value, now=NOW) == expected

    def test_http_date(self):
        assert parse_retry_after("Mon, 01 Jan 2024 12:00:30 GMT", now=NOW) == 30.0

    def test_http_date_in_past_is_zero(self):
        assert parse_retry_after("Mon, 01 Jan 2024 11:00:00 GMT", now=NOW) == 0.0

    @pytest.mark.parametrize("value", ["inf", "Infinity", "-inf", "nan", "NaN"])
    def test_non_finite_is_rejected(self, value):
        assert parse_retry_after(value, now=NOW) is None

    @pytest.mark.parametrize("value", [None, "", "soon", "12 minutes"])
    def test_missing_or_garbage(self, value):
        assert parse_retry_after(value, now=NOW) is None


class TestUrlHelpers:
    """Test suite for URL helpers"""

    def test_cache_buster_replaces_existing_param(self):
        url = add_cache_buster("https://x.org/works?tag=a&_=1", clock=lambda: 1.5)

        assert url == "https://x.org/works?tag=a&_=1500"

    def test_item_url_normalises_slash(self):
        assert item_url("https://archiveofourown.org/works/", "9") == "https://archiveofourown.org/works/9"
        assert item_url("https://archiveofourown.org/works", "9") == "https://archiveofourown.org/works/9"
