from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from calendarly.constants import DEFAULT_EVENT_DURATION_MINUTES, MAX_EVENT_DURATION_MINUTES
from calendarly.models.pages import NavLink


class EventForm(BaseModel):
    """Payload of the create/edit event form."""

    name: str
    description: str | None = None
    is_active: bool = True
    duration_in_minutes: int = Field(ge=1, le=MAX_EVENT_DURATION_MINUTES)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name is required")
        return v

    @field_validator("description")
    @classmethod
    def blank_description_is_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None


class Event(BaseModel):
    id: str
    name: str
    description: str | None = None
    duration_in_minutes: int
    is_active: bool
    clerk_user_id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class EventCard(BaseModel):
    id: str
    name: str
    description: str | None = None
    duration_in_minutes: int
    duration_description: str
    is_active: bool
    booking_url: str | None = None
    edit_url: str


class EventsPage(BaseModel):
    events: list[EventCard]
    has_events: bool
    new_event_url: str
    nav: list[NavLink]


class EventFormValues(BaseModel):
    name: str | None = None
    description: str | None = None
    is_active: bool = True
    duration_in_minutes: int = DEFAULT_EVENT_DURATION_MINUTES


class EventFormPage(BaseModel):
    title: str
    event_id: str | None = None
    values: EventFormValues
    cancel_url: str
    nav: list[NavLink]
