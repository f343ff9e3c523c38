"""Date and time helpers evaluated in a package's own timezone.

Nothing here looks at the host machine's local timezone: "today" and "now"
are always resolved in the IANA zone the tour operates in. Every function
takes an optional aware `now` so callers can pin the clock.
"""

import calendar
import datetime
import logging
from collections.abc import Iterable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from tourbook.models import CalendarDay, TimeSlot

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "America/Phoenix"
CALENDAR_CELLS = 42


def package_timezone(timezone: str | None, default: str = DEFAULT_TIMEZONE) -> str:
    """Timezone to use for a package, defaulting when the package has none."""
    return timezone or default


def is_valid_timezone(timezone: str) -> bool:
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        return False
    return True


def _zone(timezone: str) -> ZoneInfo:
    try:
        return ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        logger.warning(
            f"Unknown timezone {timezone!r}, falling back to {DEFAULT_TIMEZONE}"
        )
        return ZoneInfo(DEFAULT_TIMEZONE)


def now_in(timezone: str, now: datetime.datetime | None = None) -> datetime.datetime:
    """Current wall-clock time in `timezone`."""
    if now is None:
        now = datetime.datetime.now(datetime.UTC)
    return now.astimezone(_zone(timezone))


def today(timezone: str, now: datetime.datetime | None = None) -> str:
    """Today's date in `timezone` as YYYY-MM-DD."""
    return now_in(timezone, now).date().isoformat()


def now_time(timezone: str, now: datetime.datetime | None = None) -> str:
    """Current time in `timezone` as zero-padded HH:MM."""
    return now_in(timezone, now).strftime("%H:%M")


def is_past(date_str: str, timezone: str, now: datetime.datetime | None = None) -> bool:
    return date_str < today(timezone, now)


def is_today(date_str: str, timezone: str, now: datetime.datetime | None = None) -> bool:
    return date_str == today(timezone, now)


def is_slot_in_past(
    slot_time: str, timezone: str, now: datetime.datetime | None = None
) -> bool:
    # Zero-padded HH:MM strings order the same way as the times they denote
    return slot_time < now_time(timezone, now)


def filter_future_slots(
    slots: Iterable[TimeSlot],
    selected_date: str,
    timezone: str,
    now: datetime.datetime | None = None,
) -> list[TimeSlot]:
    """Drop open slots that already started when `selected_date` is today.

    Closed slots are always kept so they can still be displayed.
    """
    slots = list(slots)
    if not is_today(selected_date, timezone, now):
        return slots

    if now is None:
        now = datetime.datetime.now(datetime.UTC)
    return [
        slot
        for slot in slots
        if slot.bookable_status == "Closed"
        or not is_slot_in_past(slot.time, timezone, now)
    ]


def current_month(
    timezone: str, now: datetime.datetime | None = None
) -> datetime.date:
    """First day of the current month in `timezone`."""
    return now_in(timezone, now).date().replace(day=1)


def shift_month(month: datetime.date, delta: int) -> datetime.date:
    """Move a calendar month forward (positive delta) or back (negative)."""
    index = month.year * 12 + (month.month - 1) + delta
    return datetime.date(index // 12, index % 12 + 1, 1)


def generate_calendar_days(
    month: datetime.date,
    selected_date: str,
    timezone: str,
    now: datetime.datetime | None = None,
) -> list[CalendarDay]:
    """Build a fixed 6x7 grid starting on the Sunday on or before the 1st."""
    first = month.replace(day=1)
    # date.weekday() is Monday=0, the grid starts on Sunday
    start = first - datetime.timedelta(days=(first.weekday() + 1) % 7)
    today_str = today(timezone, now)

    days = []
    for offset in range(CALENDAR_CELLS):
        current = start + datetime.timedelta(days=offset)
        date_str = current.isoformat()
        days.append(
            CalendarDay(
                date=current,
                date_str=date_str,
                day=current.day,
                is_current_month=current.month == first.month,
                is_past=date_str < today_str,
                is_today=date_str == today_str,
                is_selected=date_str == selected_date,
            )
        )
    return days


def format_date_for_display(date_str: str) -> str:
    """Render YYYY-MM-DD as e.g. "Monday, June 10, 2024"."""
    date = datetime.date.fromisoformat(date_str)
    return f"{calendar.day_name[date.weekday()]}, {calendar.month_name[date.month]} {date.day}, {date.year}"


def timezone_abbreviation(
    timezone: str, now: datetime.datetime | None = None
) -> str:
    """Short zone name such as "MST"; the raw identifier if the zone is unknown."""
    try:
        zone = ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        return timezone
    if now is None:
        now = datetime.datetime.now(datetime.UTC)
    return now.astimezone(zone).tzname() or timezone
