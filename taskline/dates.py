"""Date helpers for the on-disk task line representation."""

from __future__ import annotations

from datetime import date, datetime

from taskline.constants import DATE_FORMAT, LEGACY_DATE_FORMAT


def current_day(now: datetime | None = None) -> date:
    """Return the normalized current day used for due and overdue checks."""
    moment = now if now is not None else datetime.now()
    return moment.date()


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def parse_date(text: str) -> date | None:
    """Parse an on-disk date, accepting the legacy day-first form on read.

    Returns None when the text is not a valid calendar date in either form.
    """
    candidate = text.strip()
    for date_format in (DATE_FORMAT, LEGACY_DATE_FORMAT):
        try:
            parsed = datetime.strptime(candidate, date_format)
        except ValueError:
            continue
        # strptime tolerates unpadded fields; the on-disk format does not.
        if parsed.strftime(date_format) != candidate:
            continue
        return parsed.date()
    return None


def relative_label(value: date, today: date | None = None) -> str:
    reference = today if today is not None else current_day()
    delta = (value - reference).days
    if delta == 0:
        return "today"
    if delta == 1:
        return "tomorrow"
    if delta == -1:
        return "yesterday"
    if delta > 0:
        return f"in {delta} days"
    return f"{-delta} days ago"
