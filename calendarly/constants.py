from typing import Final, Literal, get_args

DayOfWeek = Literal[
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
]

DAYS_OF_WEEK_IN_ORDER: Final[tuple[DayOfWeek, ...]] = get_args(DayOfWeek)

# H:MM or HH:MM, 24h clock
TIME_PATTERN: Final[str] = r"^([0-9]|0[0-9]|1[0-9]|2[0-3]):[0-5][0-9]$"

MAX_EVENT_DURATION_MINUTES: Final[int] = 12 * 60
DEFAULT_EVENT_DURATION_MINUTES: Final[int] = 30

DEFAULT_AVAILABILITY_START: Final[str] = "9:00"
DEFAULT_AVAILABILITY_END: Final[str] = "17:00"

EVENTS_PATH: Final[str] = "/events"
SCHEDULE_PATH: Final[str] = "/schedule"

NAV_LINKS: Final[tuple[tuple[str, str], ...]] = (
    (EVENTS_PATH, "Events"),
    (SCHEDULE_PATH, "Schedule"),
)

PUBLIC_ROUTES: Final[tuple[str, ...]] = (
    "/",
    "/sign-in(.*)",
    "/sign-up(.*)",
    "/book(.*)",
    "/health",
    "/docs(.*)",
    "/openapi.json",
)
