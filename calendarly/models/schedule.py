import re

from pydantic import BaseModel, field_validator, model_validator

from calendarly.constants import (
    DEFAULT_AVAILABILITY_END,
    DEFAULT_AVAILABILITY_START,
    TIME_PATTERN,
    DayOfWeek,
)
from calendarly.formatters import is_valid_timezone, time_to_int
from calendarly.models.pages import NavLink

TIME_RE = re.compile(TIME_PATTERN)


class AvailabilityForm(BaseModel):
    day_of_week: DayOfWeek
    start_time: str
    end_time: str

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        v = v.strip()
        if not TIME_RE.match(v):
            raise ValueError("Time must be in the format HH:MM")
        return v


class ScheduleForm(BaseModel):
    """Payload of the schedule form; saved wholesale."""

    timezone: str
    availabilities: list[AvailabilityForm] = []

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("timezone is required")
        if not is_valid_timezone(v):
            raise ValueError(f"unknown timezone: {v}")
        return v

    @model_validator(mode="after")
    def validate_windows(self) -> "ScheduleForm":
        problems: list[str] = []
        for index, availability in enumerate(self.availabilities):
            start = time_to_int(availability.start_time)
            end = time_to_int(availability.end_time)
            if start >= end:
                problems.append(f"availabilities.{index}: End time must be after start time")
            overlaps = any(
                i != index
                and other.day_of_week == availability.day_of_week
                and time_to_int(other.start_time) < end
                and time_to_int(other.end_time) > start
                for i, other in enumerate(self.availabilities)
            )
            if overlaps:
                problems.append(f"availabilities.{index}: Availability overlaps with another")
        if problems:
            raise ValueError("; ".join(problems))
        return self


class Availability(BaseModel):
    day_of_week: DayOfWeek
    start_time: str
    end_time: str


class AvailabilitySlot(Availability):
    # position in the sorted availability list
    index: int


class DayAvailabilities(BaseModel):
    day_of_week: DayOfWeek
    label: str
    availabilities: list[AvailabilitySlot]


class Schedule(BaseModel):
    id: str
    timezone: str
    clerk_user_id: str
    availabilities: list[Availability] = []


class NewAvailabilityDefaults(BaseModel):
    """Prefill for a row added to a weekday in the schedule form."""

    start_time: str = DEFAULT_AVAILABILITY_START
    end_time: str = DEFAULT_AVAILABILITY_END


class SchedulePage(BaseModel):
    timezone: str
    timezone_label: str
    has_schedule: bool
    availabilities: list[Availability]
    days: list[DayAvailabilities]
    nav: list[NavLink]
    new_availability: NewAvailabilityDefaults = NewAvailabilityDefaults()


class ScheduleSaved(BaseModel):
    success: bool = True
    message: str = "Schedule Saved!"


class TimezoneOption(BaseModel):
    value: str
    label: str


class TimezonesResponse(BaseModel):
    timezones: list[TimezoneOption]
