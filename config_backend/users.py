"""
In-memory user fixture. One demo user is seeded at startup; nothing is persisted.
"""
import logging
from dataclasses import dataclass

import bcrypt

from config_backend.config import Settings

logger = logging.getLogger(__name__)


def hash_password(password: str, rounds: int = 10) -> str:
    # Bcrypt has a 72-byte limit
    raw = password.encode("utf-8")
    if len(raw) > 72:
        raw = raw[:72]
    return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    raw = plain.encode("utf-8")
    if len(raw) > 72:
        raw = raw[:72]
    return bcrypt.checkpw(raw, hashed.encode("utf-8"))


@dataclass(frozen=True)
class UserRecord:
    id: int
    username: str
    password_hash: str
    display_name: str

    def public_view(self) -> dict:
        """Fields safe to return to the client and embed in a session token."""
        return {"id": self.id, "username": self.username, "name": self.display_name}


class UserStore:
    """Read-only lookup by exact, case-sensitive username."""

    def __init__(self, users: list[UserRecord]):
        self._by_username: dict[str, UserRecord] = {}
        for user in users:
            if user.username in self._by_username:
                raise ValueError(f"Duplicate username: {user.username}")
            self._by_username[user.username] = user

    def get(self, username: str) -> UserRecord | None:
        return self._by_username.get(username)

    def __len__(self) -> int:
        return len(self._by_username)


def seed_users(settings: Settings) -> UserStore:
    """Build the fixture from settings (demo user; overridable via DEMO_USER_* env)."""
    demo = UserRecord(
        id=1,
        username=settings.demo_username,
        password_hash=hash_password(settings.demo_password, rounds=settings.bcrypt_rounds),
        display_name=settings.demo_name,
    )
    logger.info("Seeded user: %s", demo.username)
    return UserStore([demo])
