"""Session-token verification against the external auth provider.

A request is signed in when it carries a valid session JWT, either as an
``Authorization: Bearer`` header or in the provider's session cookie. The
token's ``sub`` claim is the user id every event and schedule is keyed by.

Production tokens are RS256 and verified with the provider's JWKS, which is
cached in Redis when it is connected and in process otherwise. Setting
``AUTH_JWT_SECRET`` switches to HS256 with a shared secret, which is what the
test suite and local development use.
"""

import json
import logging
import re
import time
from collections.abc import Callable, Iterable
from typing import Any
from urllib.parse import urlencode

import httpx
import redis.asyncio as redis
from fastapi import Request
from jose import JWTError, jwt

from calendarly import state
from calendarly.config import get_settings

logger = logging.getLogger("calendarly.auth")

JWKS_CACHE_KEY = "auth:jwks"

# In-process fallback when Redis is not available
_cached_jwks: dict[str, Any] | None = None
_cached_jwks_at: float = 0.0


class AuthError(Exception):
    """Raised when a session token cannot be accepted."""


def create_route_matcher(patterns: Iterable[str]) -> Callable[[str], bool]:
    """Build a predicate telling whether a path matches any of ``patterns``.

    Patterns are regular expressions anchored at both ends, so ``/sign-in(.*)``
    matches ``/sign-in`` and everything below it while ``/`` only matches the
    root.
    """
    compiled = [re.compile(f"^{p}$") for p in patterns]

    def matches(path: str) -> bool:
        return any(c.match(path) for c in compiled)

    return matches


def extract_session_token(request: Request) -> str | None:
    auth_header = request.headers.get("authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    cookie = request.cookies.get(get_settings().auth.session_cookie)
    return cookie or None


async def _read_cached_jwks() -> dict[str, Any] | None:
    client = state.redis_client
    if client is not None:
        try:
            raw = await client.get(JWKS_CACHE_KEY)
        except redis.RedisError as e:
            logger.warning("JWKS cache read failed: %s", e)
        else:
            if raw:
                try:
                    return json.loads(raw)
                except ValueError:
                    logger.warning("Ignoring corrupt JWKS cache entry")
    ttl = get_settings().auth.jwks_cache_ttl_sec
    if _cached_jwks is not None and time.monotonic() - _cached_jwks_at < ttl:
        return _cached_jwks
    return None


async def _store_cached_jwks(jwks: dict[str, Any]) -> None:
    global _cached_jwks, _cached_jwks_at
    _cached_jwks = jwks
    _cached_jwks_at = time.monotonic()
    client = state.redis_client
    if client is not None:
        try:
            await client.setex(JWKS_CACHE_KEY, get_settings().auth.jwks_cache_ttl_sec, json.dumps(jwks))
        except redis.RedisError as e:
            logger.warning("JWKS cache write failed: %s", e)


def clear_jwks_cache() -> None:
    global _cached_jwks, _cached_jwks_at
    _cached_jwks = None
    _cached_jwks_at = 0.0


async def get_jwks(force_refresh: bool = False) -> dict[str, Any]:
    """Fetch the provider's JSON Web Key Set, using the cache when possible."""
    if not force_refresh:
        cached = await _read_cached_jwks()
        if cached is not None:
            return cached

    url = get_settings().auth.jwks_url
    if not url:
        raise AuthError("AUTH_JWKS_URL not configured")
    async with httpx.AsyncClient(timeout=5.0) as client:
        response = await client.get(url)
        response.raise_for_status()
        try:
            jwks = response.json()
        except ValueError as e:
            raise AuthError(f"JWKS response from {url} is not JSON") from e
    logger.info("Fetched %d signing keys from %s", len(jwks.get("keys", [])), url)
    await _store_cached_jwks(jwks)
    return jwks


async def _signing_key(token: str) -> dict[str, Any]:
    kid = jwt.get_unverified_header(token).get("kid")
    for refresh in (False, True):
        jwks = await get_jwks(force_refresh=refresh)
        for key in jwks.get("keys", []):
            if key.get("kid") == kid:
                return key
    raise AuthError(f"No signing key matches kid={kid}")


async def verify_session_token(token: str) -> dict[str, Any]:
    """Verify a session token and return its claims.

    Raises:
        AuthError: If the token is missing a subject or an authorized party check fails.
        JWTError: If the signature, expiry or issuer is invalid.
    """
    settings = get_settings().auth
    options = {"verify_aud": False, "leeway": settings.leeway_sec}
    issuer = settings.issuer or None

    if settings.jwt_secret:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=["HS256"], options=options, issuer=issuer)
    else:
        key = await _signing_key(token)
        claims = jwt.decode(token, key, algorithms=["RS256"], options=options, issuer=issuer)

    parties = settings.authorized_parties
    if parties and claims.get("azp") and claims["azp"] not in parties:
        raise AuthError(f"Unauthorized party: {claims['azp']}")
    if not claims.get("sub"):
        raise AuthError("Token has no subject")
    return claims


async def resolve_user_id(request: Request) -> str | None:
    """User id of the signed-in caller, or None for anonymous or invalid sessions."""
    token = extract_session_token(request)
    if not token:
        return None
    try:
        claims = await verify_session_token(token)
    except (JWTError, AuthError, httpx.HTTPError) as e:
        logger.info("Rejected session token path=%s err=%s", request.url.path, e)
        return None
    return claims["sub"]


def sign_in_redirect_url(return_to: str) -> str:
    return f"/sign-in?{urlencode({'redirect_url': return_to})}"


def provider_redirect_url(provider_url: str, return_to: str | None) -> str:
    if not return_to:
        return provider_url
    separator = "&" if "?" in provider_url else "?"
    return f"{provider_url}{separator}{urlencode({'redirect_url': return_to})}"
