import logging
import uuid
from typing import Any

import psycopg
from fastapi import APIRouter, Body
from fastapi.responses import RedirectResponse
from pydantic import ValidationError

from calendarly import db
from calendarly.config import get_settings
from calendarly.constants import EVENTS_PATH
from calendarly.dependencies import CurrentUserId, SignedInUserId
from calendarly.errors import NotFoundError, action_error
from calendarly.formatters import booking_url, build_nav_links, format_event_description
from calendarly.models.events import Event, EventCard, EventForm, EventFormPage, EventFormValues, EventsPage

logger = logging.getLogger("calendarly.events")
router = APIRouter(prefix=EVENTS_PATH, tags=["events"])


def parse_event_id(event_id: str) -> str | None:
    try:
        return str(uuid.UUID(event_id))
    except ValueError:
        return None


def _parse_form(payload: Any) -> EventForm | None:
    try:
        return EventForm.model_validate(payload)
    except ValidationError as e:
        logger.info("Rejected event form: %d errors", e.error_count())
        return None


def _to_card(event: Event) -> EventCard:
    public_url = get_settings().app.public_url
    return EventCard(
        id=event.id,
        name=event.name,
        description=event.description,
        duration_in_minutes=event.duration_in_minutes,
        duration_description=format_event_description(event.duration_in_minutes),
        is_active=event.is_active,
        # inactive events are not bookable, so they get no shareable link
        booking_url=booking_url(public_url, event.clerk_user_id, event.id) if event.is_active else None,
        edit_url=f"{EVENTS_PATH}/{event.id}/edit",
    )


@router.get("", response_model=EventsPage)
async def list_events(user_id: SignedInUserId) -> EventsPage:
    events = await db.events_list_for_user(user_id)
    logger.info("GET /events user=%s events=%d", user_id, len(events))
    return EventsPage(
        events=[_to_card(Event.model_validate(e)) for e in events],
        has_events=bool(events),
        new_event_url=f"{EVENTS_PATH}/new",
        nav=build_nav_links(EVENTS_PATH),
    )


@router.get("/new", response_model=EventFormPage)
async def new_event_page(user_id: SignedInUserId) -> EventFormPage:
    return EventFormPage(
        title="New Event",
        values=EventFormValues(),
        cancel_url=EVENTS_PATH,
        nav=build_nav_links(f"{EVENTS_PATH}/new"),
    )


@router.get("/{event_id}/edit", response_model=EventFormPage)
async def edit_event_page(event_id: str, user_id: SignedInUserId) -> EventFormPage:
    parsed_id = parse_event_id(event_id)
    event = await db.events_get(parsed_id, user_id) if parsed_id else None
    if not event:
        raise NotFoundError(detail="Event not found", resource_type="event", resource_id=event_id)
    return EventFormPage(
        title="Edit Event",
        event_id=event["id"],
        values=EventFormValues(
            name=event["name"],
            description=event["description"],
            is_active=event["is_active"],
            duration_in_minutes=event["duration_in_minutes"],
        ),
        cancel_url=EVENTS_PATH,
        nav=build_nav_links(f"{EVENTS_PATH}/{event['id']}/edit"),
    )


@router.post("")
async def create_event(user_id: CurrentUserId, payload: Any = Body(None)):
    form = _parse_form(payload)
    if form is None or user_id is None:
        return action_error(status_code=400 if user_id else 401)
    try:
        event = await db.events_create(
            clerk_user_id=user_id,
            name=form.name,
            description=form.description,
            duration_in_minutes=form.duration_in_minutes,
            is_active=form.is_active,
        )
    except psycopg.Error:
        logger.exception("Failed to create event")
        return action_error(status_code=500)
    logger.info("Created event id=%s user=%s", event["id"], user_id)
    return RedirectResponse(EVENTS_PATH, status_code=303)


@router.put("/{event_id}")
async def update_event(event_id: str, user_id: CurrentUserId, payload: Any = Body(None)):
    form = _parse_form(payload)
    if form is None or user_id is None:
        return action_error(status_code=400 if user_id else 401)
    parsed_id = parse_event_id(event_id)
    if parsed_id is None:
        return action_error()
    try:
        row_count = await db.events_update(
            parsed_id,
            user_id,
            name=form.name,
            description=form.description,
            duration_in_minutes=form.duration_in_minutes,
            is_active=form.is_active,
        )
    except psycopg.Error:
        logger.exception("Failed to update event %s", event_id)
        return action_error(status_code=500)
    if row_count == 0:
        logger.warning("Update matched no event id=%s user=%s", event_id, user_id)
        return action_error()
    logger.info("Updated event id=%s user=%s", event_id, user_id)
    return RedirectResponse(EVENTS_PATH, status_code=303)


@router.delete("/{event_id}")
async def delete_event(event_id: str, user_id: CurrentUserId):
    if user_id is None:
        return action_error(status_code=401)
    parsed_id = parse_event_id(event_id)
    if parsed_id is None:
        return action_error()
    try:
        row_count = await db.events_delete(parsed_id, user_id)
    except psycopg.Error:
        logger.exception("Failed to delete event %s", event_id)
        return action_error(status_code=500)
    if row_count == 0:
        logger.warning("Delete matched no event id=%s user=%s", event_id, user_id)
        return action_error()
    logger.info("Deleted event id=%s user=%s", event_id, user_id)
    return RedirectResponse(EVENTS_PATH, status_code=303)
