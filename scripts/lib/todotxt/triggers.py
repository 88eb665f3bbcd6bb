"""Date triggers for repeating and queued backlog tasks.

A trigger is one of:

- ``weekdays`` / ``weekends``
- day abbreviations run together, e.g. ``MonWedFri``
- an ISO date ``YYYY-MM-DD``, firing on that day and every day after
"""

from __future__ import annotations

import re
from datetime import date, datetime

DAY_NAMES = ('mon', 'tue', 'wed', 'thu', 'fri', 'sat', 'sun')


def trigger_matches(spec: str | None, today: date | None = None) -> bool:
    """Return True if the trigger ``spec`` fires on ``today``."""
    if not spec:
        return False
    if today is None:
        today = date.today()
    elif isinstance(today, datetime):
        today = today.date()

    spec = spec.strip().lower()
    weekday = today.weekday()

    if spec == 'weekdays':
        return weekday < 5
    if spec == 'weekends':
        return weekday == 5 or weekday == 6
    if re.fullmatch(r'\d{4}-\d{2}-\d{2}', spec):
        return today.isoformat() >= spec
    return DAY_NAMES[weekday] in spec
