"""
Date normalization.

Every date the engine compares has its time-of-day stripped, so two
timestamps on the same calendar day compare equal and set membership
works. Normalize at every boundary: parsing input and computing "today".
"""

from datetime import date, datetime
from typing import Union

DateLike = Union[date, datetime]


def normalize(value: DateLike) -> date:
    """Return the calendar date of a date or datetime."""
    # datetime is a subclass of date, so check it first
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise TypeError(f"Cannot normalize {type(value).__name__} to a date")


def today() -> date:
    """The current calendar date."""
    return normalize(datetime.now())


def parse_date(text: str) -> date:
    """Parse an ISO-8601 date or datetime string to a calendar date."""
    text = text.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        return normalize(datetime.fromisoformat(text))
