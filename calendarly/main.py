import logging

logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
)
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from calendarly.config import get_settings
from calendarly.controllers.booking import router as booking_router
from calendarly.controllers.events import router as events_router
from calendarly.controllers.health import router as health_router
from calendarly.controllers.home import router as home_router
from calendarly.controllers.schedule import router as schedule_router
from calendarly.errors import register_exception_handlers
from calendarly.lifespan import lifespan
from calendarly.middleware import AuthMiddleware, HTTPLogMiddleware

settings = get_settings()

app = FastAPI(title=f"{settings.app.name} API", version="1.0.0", lifespan=lifespan)

# Middleware added last runs first: CORS wraps auth so preflights are answered
app.add_middleware(AuthMiddleware)

if settings.debug.request:
    logging.getLogger("calendarly.http").setLevel(logging.DEBUG)
    app.add_middleware(HTTPLogMiddleware)

if settings.debug.auth:
    logging.getLogger("calendarly.auth").setLevel(logging.DEBUG)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins,
    allow_origin_regex=settings.cors.origins_regex or None,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(health_router)
app.include_router(home_router)
app.include_router(events_router)
app.include_router(schedule_router)
app.include_router(booking_router)
