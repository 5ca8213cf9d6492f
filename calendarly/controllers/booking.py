"""Public booking pages; visitors need not be signed in."""

import logging
from typing import Any

from fastapi import APIRouter

from calendarly import db
from calendarly.config import get_settings
from calendarly.controllers.events import parse_event_id
from calendarly.controllers.schedule import build_day_groups
from calendarly.errors import NotFoundError
from calendarly.formatters import booking_url, format_event_description, sort_availabilities
from calendarly.models.booking import BookableEvent, BookingPage, BookingProfile
from calendarly.models.events import Event
from calendarly.models.schedule import Schedule

logger = logging.getLogger("calendarly.booking")
router = APIRouter(prefix="/book", tags=["booking"])


def _to_bookable(row: dict[str, Any]) -> BookableEvent:
    event = Event.model_validate(row)
    return BookableEvent(
        id=event.id,
        name=event.name,
        description=event.description,
        duration_in_minutes=event.duration_in_minutes,
        duration_description=format_event_description(event.duration_in_minutes),
        booking_url=booking_url(get_settings().app.public_url, event.clerk_user_id, event.id),
    )


@router.get("/{clerk_user_id}", response_model=BookingProfile)
async def get_booking_profile(clerk_user_id: str) -> BookingProfile:
    events = await db.events_list_for_user(clerk_user_id, active_only=True)
    logger.info("GET /book/%s events=%d", clerk_user_id, len(events))
    return BookingProfile(clerk_user_id=clerk_user_id, events=[_to_bookable(e) for e in events])


@router.get("/{clerk_user_id}/{event_id}", response_model=BookingPage)
async def get_booking_page(clerk_user_id: str, event_id: str) -> BookingPage:
    parsed_id = parse_event_id(event_id)
    event = await db.events_get(parsed_id, clerk_user_id, active_only=True) if parsed_id else None
    if not event:
        logger.warning("Booking page for missing or inactive event %s/%s", clerk_user_id, event_id)
        raise NotFoundError(detail="Event not found", resource_type="event", resource_id=event_id)

    row = await db.schedule_get_for_user(clerk_user_id)
    schedule = Schedule.model_validate(row) if row else None
    availabilities = sort_availabilities(schedule.availabilities) if schedule else []
    return BookingPage(
        clerk_user_id=clerk_user_id,
        event=_to_bookable(event),
        timezone=schedule.timezone if schedule else None,
        days=build_day_groups(availabilities),
    )
