# src/flowhub/deadlines/parser.py

from __future__ import annotations

"""
Natural-language deadline parser.

parse_deadline() is a pure function of (text, base). "Local" wall-clock rules
(09:00, 17:00, weekdays) are evaluated in the timezone carried by `base`, so
callers pass an aware local timestamp (e.g. `datetime.now().astimezone()`).

Rules are tried in a fixed order and the first match wins.
"""

import re
from datetime import datetime, timedelta

# No leading word boundary: "within 30 minutes" counts as "in 30 minutes".
_IN_MINUTES = re.compile(r"in\s+(\d+)\s*(?:m|min|mins|minutes?)\b", re.IGNORECASE)
_IN_HOURS = re.compile(r"in\s+(\d+)\s*(?:h|hr|hrs|hours?)\b", re.IGNORECASE)
_IN_DAYS = re.compile(r"in\s+(\d+)\s*days?\b", re.IGNORECASE)
_TOMORROW = re.compile(r"\b(?:tomorrow|tommorow)\b", re.IGNORECASE)
_TODAY = re.compile(r"\btoday\b", re.IGNORECASE)
_CLOCK_TIME = re.compile(r"\b(\d{1,2})(?::(\d{2}))?\s*(a\.?m\.?|p\.?m\.?)(?![a-z])", re.IGNORECASE)
_WEEKDAY = re.compile(
    r"\b(mon(?:day)?|tue(?:s(?:day)?)?|wed(?:nesday)?|thu(?:rs(?:day)?)?|fri(?:day)?|sat(?:urday)?|sun(?:day)?)\b",
    re.IGNORECASE,
)
_NEXT_WEEK = re.compile(r"\bnext\s+week\b", re.IGNORECASE)
_THIS_WEEK = re.compile(r"\bthis\s+week\b", re.IGNORECASE)
_URGENT = re.compile(r"\b(?:asap|urgent|right\s+now|immediately)\b", re.IGNORECASE)

# datetime.weekday(): Monday == 0
_WEEKDAY_INDEX = {"mon": 0, "tue": 1, "wed": 2, "thu": 3, "fri": 4, "sat": 5, "sun": 6}

FRIDAY = 4
MORNING_HOUR = 9
END_OF_DAY_HOUR = 17
NOON_HOUR = 12
URGENT_LEAD = timedelta(minutes=5)


def _at(dt: datetime, hour: int, minute: int = 0) -> datetime:
    return dt.replace(hour=hour, minute=minute, second=0, microsecond=0)


def _explicit_clock_time(text: str) -> tuple[int, int] | None:
    """Find an "H[:MM] am/pm" mention and convert it to 24h (hour, minute)."""
    m = _CLOCK_TIME.search(text)
    if not m:
        return None

    hour = int(m.group(1))
    minute = int(m.group(2) or 0)
    if not 1 <= hour <= 12 or minute > 59:
        return None

    period = m.group(3).lower()
    if period.startswith("p") and hour != 12:
        hour += 12
    elif period.startswith("a") and hour == 12:
        hour = 0
    return hour, minute


def _parse_today(text: str, base: datetime) -> datetime:
    clock = _explicit_clock_time(text)
    if clock is None:
        return _at(base, END_OF_DAY_HOUR)
    return _at(base, *clock)


def _parse_weekday(name: str, base: datetime) -> datetime:
    target = _WEEKDAY_INDEX[name[:3].lower()]
    days_until = (target - base.weekday()) % 7

    if days_until == 0:
        if base.hour >= NOON_HOUR:
            return _at(base + timedelta(days=7), MORNING_HOUR)
        return _at(base, END_OF_DAY_HOUR)

    return _at(base + timedelta(days=days_until), MORNING_HOUR)


def _parse_this_week(base: datetime) -> datetime:
    days_until = (FRIDAY - base.weekday()) % 7
    if days_until == 0 and base.hour >= END_OF_DAY_HOUR:
        days_until = 7
    return _at(base + timedelta(days=days_until), END_OF_DAY_HOUR)


def parse_deadline(text: str, base: datetime | None = None) -> datetime | None:
    """
    Resolve a free-text deadline against `base`.

    Returns None when no rule matches; that is an ordinary outcome
    ("no deadline"), not an error.
    """
    if not text or not text.strip():
        return None
    if base is None:
        base = datetime.now().astimezone()

    if m := _IN_MINUTES.search(text):
        return base + timedelta(minutes=int(m.group(1)))

    if m := _IN_HOURS.search(text):
        return base + timedelta(hours=int(m.group(1)))

    if m := _IN_DAYS.search(text):
        return base + timedelta(days=int(m.group(1)))

    if _TOMORROW.search(text):
        return _at(base + timedelta(days=1), MORNING_HOUR)

    if _TODAY.search(text):
        return _parse_today(text, base)

    if m := _WEEKDAY.search(text):
        return _parse_weekday(m.group(1), base)

    if _NEXT_WEEK.search(text):
        return _at(base + timedelta(days=7), MORNING_HOUR)

    if _THIS_WEEK.search(text):
        return _parse_this_week(base)

    if _URGENT.search(text):
        return base + URGENT_LEAD

    return None
