"""Presentation helpers shared by the page controllers."""

from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any, TypeVar
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError, available_timezones

from calendarly.constants import DAYS_OF_WEEK_IN_ORDER, NAV_LINKS

T = TypeVar("T")


def time_to_int(time: str) -> float:
    """Turn ``"9:15"`` into ``9.15`` so times compare numerically."""
    return float(time.replace(":", ".", 1))


def format_event_description(duration_in_minutes: int) -> str:
    hours, minutes = divmod(duration_in_minutes, 60)
    minutes_string = f"{minutes} {'mins' if minutes > 1 else 'min'}"
    hours_string = f"{hours} {'hrs' if hours > 1 else 'hr'}"

    if hours == 0:
        return minutes_string
    if minutes == 0:
        return hours_string
    return f"{hours_string} {minutes_string}"


def format_timezone_offset(timezone: str, at: datetime | None = None) -> str:
    """Short GMT offset label for ``timezone``, e.g. ``GMT-5`` or ``GMT+5:30``."""
    tz = ZoneInfo(timezone)
    moment = at.astimezone(tz) if at else datetime.now(tz)
    offset = moment.utcoffset()
    total_minutes = int(offset.total_seconds() // 60) if offset else 0
    if total_minutes == 0:
        return "GMT"
    sign = "+" if total_minutes > 0 else "-"
    hours, minutes = divmod(abs(total_minutes), 60)
    if minutes:
        return f"GMT{sign}{hours}:{minutes:02d}"
    return f"GMT{sign}{hours}"


def is_valid_timezone(timezone: str) -> bool:
    if not timezone:
        return False
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        return False
    return True


def list_timezones(at: datetime | None = None) -> list[dict[str, str]]:
    """All supported IANA zones with an offset label, sorted by name."""
    return [
        {"value": name, "label": f"{name} ({format_timezone_offset(name, at)})"}
        for name in sorted(available_timezones())
    ]


def _field(item: Any, name: str) -> Any:
    if isinstance(item, dict):
        return item[name]
    return getattr(item, name)


def sort_availabilities(availabilities: Iterable[T]) -> list[T]:
    """Stable sort by start time; does not mutate the input."""
    return sorted(availabilities, key=lambda a: time_to_int(_field(a, "start_time")))


def group_availabilities_by_day(availabilities: Sequence[T]) -> dict[str, list[tuple[int, T]]]:
    """Group availabilities by weekday, keeping each row's position in the input.

    Every weekday is present in Monday..Sunday order, empty days map to an
    empty list. Rows keep their relative order inside a day.
    """
    grouped: dict[str, list[tuple[int, T]]] = {day: [] for day in DAYS_OF_WEEK_IN_ORDER}
    for index, availability in enumerate(availabilities):
        grouped[_field(availability, "day_of_week")].append((index, availability))
    return grouped


def booking_url(public_url: str, clerk_user_id: str, event_id: str) -> str:
    return f"{public_url.rstrip('/')}/book/{clerk_user_id}/{event_id}"


def build_nav_links(path: str) -> list[dict[str, Any]]:
    """Navigation entries for private pages; a link is active when the path starts with its href."""
    return [
        {"href": href, "label": label, "active": path.startswith(href)}
        for href, label in NAV_LINKS
    ]
