"""
Auth gateway: credential check, token issuance, and the bearer-token dependency for protected routes.
"""
import logging
import secrets
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config_backend.config import Settings
from config_backend.errors import InvalidCredentials, MissingToken
from config_backend.tokens import decode_token, issue_token
from config_backend.users import UserRecord, UserStore, hash_password, verify_password

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginResult:
    token: str
    user: UserRecord


class AuthGateway:
    def __init__(self, users: UserStore, settings: Settings):
        self._users = users
        self._settings = settings
        # Checked against for unknown usernames so both failure paths cost one bcrypt round
        self._dummy_hash = hash_password(secrets.token_urlsafe(16), rounds=settings.bcrypt_rounds)

    async def login(self, username: str, password: str) -> LoginResult:
        """
        Exact username match + bcrypt check. Unknown user and wrong password raise the same
        InvalidCredentials so callers cannot tell which one failed.
        """
        user = self._users.get(username)
        if user is None:
            await run_in_threadpool(verify_password, password, self._dummy_hash)
            logger.warning("Login failed: unknown user")
            raise InvalidCredentials()
        # bcrypt is deliberately slow; keep it off the event loop
        ok = await run_in_threadpool(verify_password, password, user.password_hash)
        if not ok:
            logger.warning("Login failed: bad password for user_id=%s", user.id)
            raise InvalidCredentials()
        token = issue_token(user, self._settings)
        logger.info("Login ok: user_id=%s", user.id)
        return LoginResult(token=token, user=user)

    def verify(self, token: str | None) -> dict:
        """Return claims for a valid token. MissingToken (401) if absent, InvalidOrExpiredToken (403) otherwise."""
        if not token:
            raise MissingToken()
        return decode_token(token, self._settings)

    @staticmethod
    def get_profile(claims: dict) -> dict:
        return dict(claims)


security = HTTPBearer(auto_error=False)


def get_gateway(request: Request) -> AuthGateway:
    return request.app.state.gateway


def get_bearer_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> str | None:
    """Token from 'Authorization: Bearer <token>', or None when the header is absent or not Bearer."""
    if credentials is None:
        return None
    return credentials.credentials


def get_claims(
    token: Annotated[str | None, Depends(get_bearer_token)],
    gateway: Annotated[AuthGateway, Depends(get_gateway)],
) -> dict:
    """Dependency: valid session token -> decoded claims. Runs before any upstream call."""
    return gateway.verify(token)


RequireUser = Depends(get_claims)
