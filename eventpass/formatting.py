from __future__ import annotations

import datetime as dt
from typing import Optional
from zoneinfo import ZoneInfo

# Event times are entered as India local time and stored in UTC
EVENT_TIMEZONE = ZoneInfo("Asia/Kolkata")
PLACEHOLDER = "—"

_MONTHS = ["January", "February", "March", "April", "May", "June", "July",
           "August", "September", "October", "November", "December"]


def _as_utc(d: dt.datetime) -> dt.datetime:
    if d.tzinfo is None:
        return d.replace(tzinfo=dt.timezone.utc)
    return d.astimezone(dt.timezone.utc)


def format_event_datetime(d: Optional[dt.datetime], tz: dt.tzinfo = EVENT_TIMEZONE) -> str:
    """e.g. ``1 March 2025, 02:30 PM`` in the event timezone."""
    if d is None:
        return PLACEHOLDER
    local = _as_utc(d).astimezone(tz)
    hour = local.hour % 12 or 12
    ampm = "AM" if local.hour < 12 else "PM"
    return f"{local.day} {_MONTHS[local.month - 1]} {local.year}, {hour:02d}:{local.minute:02d} {ampm}"


def format_registered(d: Optional[dt.datetime]) -> str:
    """Sortable UTC stamp: ``YYYY-MM-DD HH:MM:SS``."""
    if d is None:
        return PLACEHOLDER
    return _as_utc(d).strftime("%Y-%m-%d %H:%M:%S")


def or_placeholder(s: str) -> str:
    return s if s and s.strip() else PLACEHOLDER
