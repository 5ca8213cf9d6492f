import logging
import time
from collections.abc import Iterable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from calendarly.auth import create_route_matcher, resolve_user_id, sign_in_redirect_url
from calendarly.constants import PUBLIC_ROUTES
from calendarly.errors import action_error


class HTTPLogMiddleware(BaseHTTPMiddleware):
    """Debug line per request with status, duration and the resolved user (REQUEST_DEBUG=1)."""

    def __init__(self, app, logger_name: str = "calendarly.http"):
        super().__init__(app)
        self._logger = logging.getLogger(logger_name)

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        try:
            response: Response = await call_next(request)
        except Exception as e:
            self._logger.warning("%s %s failed after %dms: %r",
                                 request.method, request.url.path, _elapsed_ms(start), e)
            raise
        self._logger.debug("%s %s -> %s in %dms user=%s",
                           request.method, request.url.path, response.status_code,
                           _elapsed_ms(start), getattr(request.state, "user_id", None) or "-")
        return response


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class AuthMiddleware(BaseHTTPMiddleware):
    """Resolve the signed-in user and keep anonymous callers off private routes.

    The user id (or None) is stored on ``request.state.user_id``. Anonymous
    page loads are redirected to the sign-in page, anonymous form submissions
    get the action error flag.
    """

    def __init__(self, app, public_routes: Iterable[str] = PUBLIC_ROUTES):
        super().__init__(app)
        self._is_public = create_route_matcher(public_routes)
        self._logger = logging.getLogger("calendarly.auth")

    async def dispatch(self, request: Request, call_next):
        user_id = await resolve_user_id(request)
        request.state.user_id = user_id
        path = request.url.path
        if user_id is None and not self._is_public(path):
            self._logger.debug("auth.protect anonymous method=%s path=%s", request.method, path)
            if request.method in ("GET", "HEAD"):
                return RedirectResponse(sign_in_redirect_url(str(request.url)), status_code=307)
            return action_error(status_code=401)
        return await call_next(request)
