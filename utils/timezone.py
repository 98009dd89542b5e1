"""UTC-everywhere time handling, plus lenient parsing of invoice dates."""

from datetime import date, datetime, timezone


def now_utc() -> datetime:
    """
    Current time in UTC.

    Use this instead of datetime.now() everywhere.
    """
    return datetime.now(timezone.utc)


def parse_invoice_date(value: str | None) -> date | None:
    """
    Calendar date from an invoice's issueDate / dueDate string.

    Invoice dates are free-form strings on the wire. Accepts "2025-01-05"
    and full ISO 8601 timestamps ("2025-01-05T10:00:00Z"); the time part
    and offset are dropped. Returns None for missing or unparseable values.
    """
    if not value:
        return None
    try:
        return datetime.fromisoformat(value).date()
    except ValueError:
        return None
