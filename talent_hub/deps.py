"""Request dependencies: caller identity and rate-limit admission."""
import logging
from typing import Optional

from fastapi import Depends, Request, Response

from talent_hub.config import settings
from talent_hub.errors import InvalidInput, RateLimited
from talent_hub.security import RequestIdentity, verify_token
from talent_hub.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def client_identifier(request: Request) -> str:
    """First forwarded hop, else X-Real-IP, else the connection's peer address."""
    forwarded = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop
    real_ip = request.headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip
    if request.client and request.client.host:
        return request.client.host
    raise InvalidInput(
        "Client could not be identified",
        code="MISSING_CLIENT_IDENTITY",
        details="A client address is required for rate limiting",
    )


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def enforce_rate_limit(request: Request, response: Response, limiter: RateLimiter) -> None:
    identifier = client_identifier(request)
    decision = limiter.admit(identifier)
    if not decision.allowed:
        logger.warning("Rate limit exceeded for %s on %s", identifier, request.url.path)
        raise RateLimited(details="Too many requests, please try again later")
    response.headers["X-RateLimit-Limit"] = str(limiter.limit)
    response.headers["X-RateLimit-Remaining"] = str(decision.remaining)


def _bearer_token(request: Request) -> Optional[str]:
    auth = request.headers.get("authorization", "")
    if auth.lower().startswith("bearer "):
        return auth.split(" ", 1)[1].strip() or None
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def get_identity(
    request: Request,
    response: Response,
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> RequestIdentity:
    """Verified caller identity, admitted by the rate limiter."""
    identity = verify_token(_bearer_token(request))
    enforce_rate_limit(request, response, limiter)
    return identity


def private_cache(response: Response) -> None:
    """Per-caller lists may only be cached by the caller's own client."""
    response.headers["Cache-Control"] = f"private, max-age={settings.LIST_CACHE_MAX_AGE}"
