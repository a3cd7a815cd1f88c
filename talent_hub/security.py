"""
Session token verification.

Tokens are issued by the login service (outside this API) as signed JWTs that
carry at least {id, email, exp}. This module only verifies them and turns them
into a per-request RequestIdentity.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

import jwt

from talent_hub.config import settings
from talent_hub.errors import Forbidden, TokenExpired, Unauthenticated

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestIdentity:
    user_id: str
    email: Optional[str]
    expires_at: datetime


def create_token(user_id: str, email: Optional[str], expires_at: datetime,
                 **claims: Any) -> str:
    """Encode a session token; used by tests and local tooling."""
    payload = {"id": user_id, "email": email, "exp": expires_at, **claims}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: Optional[str], now: Optional[datetime] = None) -> RequestIdentity:
    """Validate a signed session token and return the caller's identity.

    Raises Unauthenticated for a missing, malformed or unsigned token and
    TokenExpired once exp <= now. The expiry check is done here explicitly so a
    well-formed but time-expired token never reaches a mutation endpoint, even
    if the JWT library is configured with leeway.
    """
    if not token:
        raise Unauthenticated(details="Authentication token not found")

    now = now or datetime.now(timezone.utc)
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["exp"], "verify_exp": False},
        )
    except jwt.PyJWTError as exc:
        logger.info("Rejected session token: %s", exc)
        raise Unauthenticated(code="INVALID_TOKEN", details="Authentication token is invalid")

    try:
        expires_at = datetime.fromtimestamp(float(payload["exp"]), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        raise Unauthenticated(code="INVALID_TOKEN", details="Token expiry is malformed")
    if expires_at <= now:
        raise TokenExpired(details="Authentication token has expired")

    user_id = payload.get("id") or payload.get("sub")
    if not user_id:
        raise Unauthenticated(
            "User ID not found in token",
            code="INVALID_TOKEN",
            details="User ID is required but not found in authentication token",
        )

    if payload.get("isRegistered") is False:
        raise Forbidden(
            "User not registered",
            code="NOT_REGISTERED",
            details="You must be registered in our system to access this resource",
        )

    return RequestIdentity(user_id=str(user_id), email=payload.get("email"), expires_at=expires_at)
