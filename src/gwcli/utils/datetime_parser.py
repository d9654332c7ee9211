"""Flexible date/time parsing for calendar commands.

Accepts the loose forms people type on a command line and turns them
into UTC ISO 8601 instants for the Calendar API:

- ISO 8601: "2025-01-15T10:00:00Z"
- Date + time: "2025-01-15 10:00"
- Relative: "today 3:30pm", "tomorrow 2pm"
- Time only: "14:00", "9am"
- Anything else python-dateutil understands: "Jan 15 2025 10am"

Inputs without a timezone are read in the machine's local timezone.
"""

import re
from datetime import date, datetime, time, timedelta, timezone

from dateutil import parser as dateutil_parser

from gwcli.errors import UnparseableDateTimeError

_ISO_PREFIX_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}")
_DATE_TIME_RE = re.compile(r"^(\d{4}-\d{2}-\d{2})\s+(\d{1,2}):(\d{2})$")
_TIME_ONLY_RE = re.compile(r"^(\d{1,2})(?::(\d{2}))?\s*(am|pm)?$", re.IGNORECASE)


def to_utc_iso(dt: datetime) -> str:
    """Format a datetime as a UTC ISO 8601 string with a Z suffix.

    Naive datetimes are taken to be local time.
    """
    if dt.tzinfo is None:
        dt = dt.astimezone()
    return dt.astimezone(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def _local_instant(day: date, hour: int, minute: int, value: str) -> str:
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise UnparseableDateTimeError(value)
    return to_utc_iso(datetime.combine(day, time(hour, minute)))


def _time_of_day(match: re.Match[str], value: str) -> tuple[int, int]:
    """Convert an H[:MM][am|pm] match to 24-hour (hour, minute)."""
    hour = int(match.group(1))
    minute = int(match.group(2) or 0)
    meridian = (match.group(3) or "").lower()

    if meridian:
        if not 1 <= hour <= 12:
            raise UnparseableDateTimeError(value)
        if meridian == "pm" and hour < 12:
            hour += 12
        elif meridian == "am" and hour == 12:
            hour = 0

    return hour, minute


def parse_datetime(value: str, now: datetime | None = None) -> str:
    """Parse a loosely formatted date/time into a UTC ISO 8601 string.

    Forms are tried in order and the first match wins: ISO 8601, a
    leading "today"/"tomorrow", "YYYY-MM-DD HH:MM", a bare time of day,
    and finally python-dateutil's free-form parser.

    Args:
        value: Date/time text as typed by the user.
        now: Reference time for relative forms (defaults to local now).

    Returns:
        UTC ISO 8601 string, e.g. "2025-01-15T10:00:00Z".

    Raises:
        UnparseableDateTimeError: If no form matches.
    """
    text = value.strip()

    if _ISO_PREFIX_RE.match(text):
        try:
            return to_utc_iso(dateutil_parser.isoparse(text))
        except (ValueError, OverflowError) as e:
            raise UnparseableDateTimeError(value) from e

    if now is None:
        now = datetime.now()
    elif now.tzinfo is not None:
        now = now.astimezone().replace(tzinfo=None)

    base_day = now.date()
    lowered = text.lower()
    if lowered.startswith("tomorrow"):
        base_day += timedelta(days=1)
        text = text[len("tomorrow") :].strip()
    elif lowered.startswith("today"):
        text = text[len("today") :].strip()

    match = _DATE_TIME_RE.match(text)
    if match:
        try:
            day = date.fromisoformat(match.group(1))
        except ValueError as e:
            raise UnparseableDateTimeError(value) from e
        return _local_instant(day, int(match.group(2)), int(match.group(3)), value)

    match = _TIME_ONLY_RE.match(text)
    if match:
        hour, minute = _time_of_day(match, value)
        return _local_instant(base_day, hour, minute, value)

    try:
        parsed = dateutil_parser.parse(value, default=datetime.combine(now.date(), time()))
    except (ValueError, OverflowError) as e:
        raise UnparseableDateTimeError(value) from e
    return to_utc_iso(parsed)


def default_end(start: str, minutes: int = 60) -> str:
    """End time for an event that only has a start (one hour later by default)."""
    return to_utc_iso(dateutil_parser.isoparse(start) + timedelta(minutes=minutes))
