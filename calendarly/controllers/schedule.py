import logging
from typing import Any

import psycopg
from fastapi import APIRouter, Body, Query
from pydantic import ValidationError

from calendarly import db
from calendarly.config import get_settings
from calendarly.constants import SCHEDULE_PATH
from calendarly.dependencies import CurrentUserId, SignedInUserId
from calendarly.errors import BadRequestError, action_error
from calendarly.formatters import (
    build_nav_links,
    format_timezone_offset,
    group_availabilities_by_day,
    is_valid_timezone,
    list_timezones,
    sort_availabilities,
)
from calendarly.models.schedule import (
    Availability,
    AvailabilitySlot,
    DayAvailabilities,
    Schedule,
    ScheduleForm,
    SchedulePage,
    ScheduleSaved,
    TimezonesResponse,
)

logger = logging.getLogger("calendarly.schedule")
router = APIRouter(prefix=SCHEDULE_PATH, tags=["schedule"])


def build_day_groups(availabilities: list[Availability]) -> list[DayAvailabilities]:
    """Weekday rows for the schedule grid, Monday first, indexes into ``availabilities``."""
    return [
        DayAvailabilities(
            day_of_week=day,
            label=day[:3],
            availabilities=[AvailabilitySlot(index=index, **a.model_dump()) for index, a in rows],
        )
        for day, rows in group_availabilities_by_day(availabilities).items()
    ]


@router.get("", response_model=SchedulePage)
async def get_schedule(
    user_id: SignedInUserId,
    timezone: str | None = Query(None, description="Caller's local timezone, used when no schedule exists"),
) -> SchedulePage:
    row = await db.schedule_get_for_user(user_id)
    schedule = Schedule.model_validate(row) if row else None
    if schedule:
        tz = schedule.timezone
        availabilities = sort_availabilities(schedule.availabilities)
    else:
        if timezone is not None and not is_valid_timezone(timezone):
            raise BadRequestError(detail=f"Unknown timezone: {timezone}")
        tz = timezone or get_settings().app.default_timezone
        availabilities = []

    logger.info("GET /schedule user=%s availabilities=%d", user_id, len(availabilities))
    return SchedulePage(
        timezone=tz,
        timezone_label=f"{tz} ({format_timezone_offset(tz)})",
        has_schedule=schedule is not None,
        availabilities=availabilities,
        days=build_day_groups(availabilities),
        nav=build_nav_links(SCHEDULE_PATH),
    )


@router.get("/timezones", response_model=TimezonesResponse)
async def get_timezones(user_id: SignedInUserId) -> TimezonesResponse:
    return TimezonesResponse(timezones=list_timezones())


@router.put("")
async def save_schedule(user_id: CurrentUserId, payload: Any = Body(None)):
    try:
        form = ScheduleForm.model_validate(payload)
    except ValidationError as e:
        logger.info("Rejected schedule form: %d errors", e.error_count())
        form = None
    if form is None or user_id is None:
        return action_error(status_code=400 if user_id else 401)

    try:
        schedule_id = await db.schedule_save(
            clerk_user_id=user_id,
            timezone=form.timezone,
            availabilities=[a.model_dump() for a in form.availabilities],
        )
    except psycopg.Error:
        logger.exception("Failed to save schedule for user=%s", user_id)
        return action_error(status_code=500)
    logger.info(
        "Saved schedule id=%s user=%s availabilities=%d",
        schedule_id,
        user_id,
        len(form.availabilities),
    )
    return ScheduleSaved()
