"""
Session tokens: HS256 JWTs signed with the server secret. Stateless; validity is signature + exp only.
"""
import logging
from datetime import datetime, timedelta, timezone

import jwt

from config_backend.config import Settings
from config_backend.errors import InvalidOrExpiredToken
from config_backend.users import UserRecord

logger = logging.getLogger(__name__)


def issue_token(user: UserRecord, settings: Settings, now: datetime | None = None) -> str:
    """Sign {id, username, name, iat, exp} for user; exp = iat + session TTL."""
    if now is None:
        now = datetime.now(timezone.utc)
    exp = now + timedelta(seconds=settings.session_token_ttl_seconds)
    payload = {
        **user.public_view(),
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    token = jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    if isinstance(token, bytes):
        token = token.decode("utf-8")
    return token


def decode_token(token: str, settings: Settings) -> dict:
    """
    Verify signature and expiry against the current clock. Returns claims.
    Raises InvalidOrExpiredToken for any failure (bad signature, malformed, expired).
    """
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "iat"], "verify_exp": True},
        )
    except jwt.ExpiredSignatureError:
        logger.debug("Session token expired")
        raise InvalidOrExpiredToken()
    except jwt.InvalidTokenError as e:
        logger.debug("Session token invalid: %s", e)
        raise InvalidOrExpiredToken()
