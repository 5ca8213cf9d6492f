from datetime import UTC, datetime

import pytest

from calendarly.constants import DAYS_OF_WEEK_IN_ORDER
from calendarly.formatters import (
    booking_url,
    build_nav_links,
    format_event_description,
    format_timezone_offset,
    group_availabilities_by_day,
    is_valid_timezone,
    list_timezones,
    sort_availabilities,
    time_to_int,
)

WINTER = datetime(2024, 1, 15, 12, 0, tzinfo=UTC)
SUMMER = datetime(2024, 7, 15, 12, 0, tzinfo=UTC)


class TestTimeToInt:
    def test_converts_to_comparable_number(self):
        assert time_to_int("9:15") == 9.15
        assert time_to_int("17:00") == 17.0

    def test_ordering_follows_clock(self):
        times = ["10:00", "9:30", "9:05", "23:59", "0:00"]
        assert sorted(times, key=time_to_int) == ["0:00", "9:05", "9:30", "10:00", "23:59"]


class TestFormatEventDescription:
    @pytest.mark.parametrize(
        "minutes,expected",
        [
            (1, "1 min"),
            (30, "30 mins"),
            (60, "1 hr"),
            (120, "2 hrs"),
            (61, "1 hr 1 min"),
            (90, "1 hr 30 mins"),
            (150, "2 hrs 30 mins"),
        ],
    )
    def test_formats(self, minutes, expected):
        assert format_event_description(minutes) == expected


class TestFormatTimezoneOffset:
    def test_utc(self):
        assert format_timezone_offset("UTC", WINTER) == "GMT"

    def test_whole_hour_offsets_follow_dst(self):
        assert format_timezone_offset("America/New_York", WINTER) == "GMT-5"
        assert format_timezone_offset("America/New_York", SUMMER) == "GMT-4"

    def test_half_hour_offset(self):
        assert format_timezone_offset("Asia/Kolkata", WINTER) == "GMT+5:30"

    def test_list_timezones_labels(self):
        zones = list_timezones(WINTER)
        by_value = {z["value"]: z["label"] for z in zones}
        assert by_value["Asia/Kolkata"] == "Asia/Kolkata (GMT+5:30)"
        assert [z["value"] for z in zones] == sorted(by_value)


class TestIsValidTimezone:
    def test_known_zone(self):
        assert is_valid_timezone("Europe/Berlin") is True

    @pytest.mark.parametrize("value", ["", "Mars/Olympus", "../etc/passwd"])
    def test_unknown_zone(self, value):
        assert is_valid_timezone(value) is False


class TestAvailabilityGrouping:
    def test_sort_by_start_time_keeps_input(self):
        rows = [
            {"day_of_week": "monday", "start_time": "13:00", "end_time": "14:00"},
            {"day_of_week": "tuesday", "start_time": "9:00", "end_time": "10:00"},
            {"day_of_week": "monday", "start_time": "9:30", "end_time": "10:00"},
        ]
        original = list(rows)

        result = sort_availabilities(rows)

        assert [r["start_time"] for r in result] == ["9:00", "9:30", "13:00"]
        assert rows == original

    def test_groups_every_weekday_in_order(self):
        rows = sort_availabilities([
            {"day_of_week": "friday", "start_time": "15:00", "end_time": "16:00"},
            {"day_of_week": "monday", "start_time": "13:00", "end_time": "14:00"},
            {"day_of_week": "monday", "start_time": "9:00", "end_time": "10:00"},
        ])

        grouped = group_availabilities_by_day(rows)

        assert list(grouped) == list(DAYS_OF_WEEK_IN_ORDER)
        assert [(i, a["start_time"]) for i, a in grouped["monday"]] == [(0, "9:00"), (1, "13:00")]
        assert [(i, a["start_time"]) for i, a in grouped["friday"]] == [(2, "15:00")]
        assert grouped["sunday"] == []

    def test_weekday_order_starts_monday(self):
        assert DAYS_OF_WEEK_IN_ORDER == (
            "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
        )


class TestLinks:
    def test_booking_url(self):
        assert booking_url("https://cal.example.com/", "user_1", "abc") == "https://cal.example.com/book/user_1/abc"

    def test_nav_links_active_by_prefix(self):
        links = build_nav_links("/events/new")
        assert links == [
            {"href": "/events", "label": "Events", "active": True},
            {"href": "/schedule", "label": "Schedule", "active": False},
        ]
