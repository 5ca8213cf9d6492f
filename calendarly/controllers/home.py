import logging

from fastapi import APIRouter
from fastapi.responses import RedirectResponse

from calendarly.auth import provider_redirect_url
from calendarly.config import get_settings
from calendarly.constants import EVENTS_PATH
from calendarly.dependencies import CurrentUserId
from calendarly.models.pages import AuthPage, HomePage

logger = logging.getLogger("calendarly.home")
router = APIRouter(tags=["home"])


@router.get("/", response_model=HomePage)
async def home(user_id: CurrentUserId):
    # Signed-in users land on their events
    if user_id is not None:
        return RedirectResponse(EVENTS_PATH, status_code=303)
    return HomePage(
        title=f"Welcome to {get_settings().app.name}",
        sign_in_url="/sign-in",
        sign_up_url="/sign-up",
    )


def _auth_page(mode: str, user_id: str | None, provider_url: str, redirect_url: str | None):
    if user_id is not None:
        return RedirectResponse(EVENTS_PATH, status_code=303)
    if provider_url:
        logger.debug("Sending anonymous visitor to provider %s page", mode)
        return RedirectResponse(provider_redirect_url(provider_url, redirect_url), status_code=307)
    return AuthPage(mode=mode, redirect_url=redirect_url)


@router.get("/sign-in", response_model=AuthPage)
async def sign_in(user_id: CurrentUserId, redirect_url: str | None = None):
    return _auth_page("sign-in", user_id, get_settings().auth.provider_sign_in_url, redirect_url)


@router.get("/sign-up", response_model=AuthPage)
async def sign_up(user_id: CurrentUserId, redirect_url: str | None = None):
    return _auth_page("sign-up", user_id, get_settings().auth.provider_sign_up_url, redirect_url)
