"""Tests for utils/timezone.py."""

from datetime import date, timezone

from utils.timezone import now_utc, parse_invoice_date


def test_now_utc_is_aware():
    assert now_utc().tzinfo == timezone.utc


class TestParseInvoiceDate:

    def test_plain_date(self):
        assert parse_invoice_date("2025-01-05") == date(2025, 1, 5)

    def test_timestamp_keeps_calendar_date(self):
        assert parse_invoice_date("2025-01-05T23:30:00+02:00") == date(2025, 1, 5)
        assert parse_invoice_date("2025-01-05T10:00:00Z") == date(2025, 1, 5)

    def test_missing(self):
        assert parse_invoice_date(None) is None
        assert parse_invoice_date("") is None

    def test_unparseable(self):
        assert parse_invoice_date("05/01/2025") is None
        assert parse_invoice_date("soon") is None
