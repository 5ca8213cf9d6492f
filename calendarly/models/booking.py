from pydantic import BaseModel

from calendarly.models.schedule import DayAvailabilities


class BookableEvent(BaseModel):
    id: str
    name: str
    description: str | None = None
    duration_in_minutes: int
    duration_description: str
    booking_url: str


class BookingProfile(BaseModel):
    clerk_user_id: str
    events: list[BookableEvent]


class BookingPage(BaseModel):
    clerk_user_id: str
    event: BookableEvent
    timezone: str | None = None
    days: list[DayAvailabilities]
