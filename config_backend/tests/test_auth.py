"""Tests for the auth gateway and session tokens (no HTTP)."""
import asyncio
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from config_backend.auth import AuthGateway
from config_backend.errors import InvalidCredentials, InvalidOrExpiredToken, MissingToken
from config_backend.tests.fakes import DEMO_PASSWORD, DEMO_USERNAME, TEST_SECRET, make_settings
from config_backend.tokens import decode_token, issue_token
from config_backend.users import UserRecord, UserStore, hash_password, seed_users, verify_password

DAY = timedelta(hours=24)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def gateway(settings):
    return AuthGateway(seed_users(settings), settings)


@pytest.fixture
def user():
    return UserRecord(id=7, username="someone@example.com", password_hash="x", display_name="Some One")


def test_hash_and_verify_password():
    h = hash_password("s3cret", rounds=4)
    assert h != "s3cret"
    assert verify_password("s3cret", h) is True
    assert verify_password("S3cret", h) is False


def test_user_store_rejects_duplicate_usernames():
    u = UserRecord(id=1, username="a", password_hash="x", display_name="A")
    with pytest.raises(ValueError):
        UserStore([u, UserRecord(id=2, username="a", password_hash="y", display_name="B")])


def test_seed_users_hashes_demo_password(settings):
    store = seed_users(settings)
    demo = store.get(DEMO_USERNAME)
    assert demo is not None
    assert demo.password_hash != DEMO_PASSWORD
    assert verify_password(DEMO_PASSWORD, demo.password_hash)


def test_login_returns_token_with_user_claims(gateway):
    result = asyncio.run(gateway.login(DEMO_USERNAME, DEMO_PASSWORD))
    assert result.user.username == DEMO_USERNAME
    claims = jwt.decode(result.token, TEST_SECRET, algorithms=["HS256"])
    assert claims["id"] == 1
    assert claims["username"] == DEMO_USERNAME
    assert claims["name"] == "Demo User"
    assert claims["exp"] - claims["iat"] == 24 * 60 * 60


@pytest.mark.parametrize(
    "username,password",
    [
        (DEMO_USERNAME, "wrong-password"),
        (DEMO_USERNAME, ""),
        ("nobody@example.com", DEMO_PASSWORD),
        ("Demo@ltimindtree.com", DEMO_PASSWORD),  # case-sensitive lookup
        (DEMO_USERNAME.upper(), DEMO_PASSWORD),
    ],
)
def test_login_failures_are_indistinguishable(gateway, username, password):
    with pytest.raises(InvalidCredentials) as exc_info:
        asyncio.run(gateway.login(username, password))
    assert exc_info.value.message == "Invalid credentials"
    assert exc_info.value.status_code == 401


def test_verify_missing_token_raises_missing_token(gateway):
    with pytest.raises(MissingToken):
        gateway.verify(None)
    with pytest.raises(MissingToken):
        gateway.verify("")


def test_verify_garbage_token_raises_invalid(gateway):
    with pytest.raises(InvalidOrExpiredToken) as exc_info:
        gateway.verify("not.a.jwt")
    assert exc_info.value.status_code == 403


def test_token_signed_with_other_secret_rejected(user, settings):
    other = make_settings(jwt_secret="a-completely-different-signing-secret-value")
    token = issue_token(user, other)
    with pytest.raises(InvalidOrExpiredToken):
        decode_token(token, settings)


def test_token_accepted_just_before_expiry(user, settings):
    issued = datetime.now(timezone.utc) - DAY + timedelta(seconds=60)
    token = issue_token(user, settings, now=issued)
    claims = decode_token(token, settings)
    assert claims["id"] == 7
    assert claims["name"] == "Some One"


def test_token_rejected_at_expiry(user, settings):
    issued = datetime.now(timezone.utc) - DAY
    token = issue_token(user, settings, now=issued)
    with pytest.raises(InvalidOrExpiredToken):
        decode_token(token, settings)


def test_token_rejected_well_after_expiry(user, settings):
    issued = datetime.now(timezone.utc) - DAY * 3
    token = issue_token(user, settings, now=issued)
    with pytest.raises(InvalidOrExpiredToken):
        decode_token(token, settings)


def test_token_without_exp_rejected(settings):
    token = jwt.encode({"id": 1, "username": "x", "name": "X"}, TEST_SECRET, algorithm="HS256")
    with pytest.raises(InvalidOrExpiredToken):
        decode_token(token, settings)


def test_get_profile_echoes_claims():
    claims = {"id": 1, "username": "u", "name": "U", "iat": 1, "exp": 2}
    profile = AuthGateway.get_profile(claims)
    assert profile == claims
    assert profile is not claims


def test_unknown_user_still_runs_bcrypt(gateway, monkeypatch):
    from config_backend import auth as auth_module

    checked = []

    def counting_verify(plain, hashed):
        checked.append(hashed)
        return False

    monkeypatch.setattr(auth_module, "verify_password", counting_verify)
    with pytest.raises(InvalidCredentials):
        asyncio.run(gateway.login("ghost@example.com", "whatever"))
    with pytest.raises(InvalidCredentials):
        asyncio.run(gateway.login(DEMO_USERNAME, "whatever"))
    # One bcrypt comparison on each failure path
    assert len(checked) == 2
    assert all(h.startswith("$2") for h in checked)


def test_token_times_are_whole_seconds(user, settings):
    """JWT NumericDate is integral: iat/exp drop sub-second precision (up to 1s early expiry)."""
    issued = datetime(2030, 1, 1, 12, 0, 0, 900000, tzinfo=timezone.utc)
    token = issue_token(user, settings, now=issued)
    claims = jwt.decode(token, TEST_SECRET, algorithms=["HS256"], options={"verify_exp": False, "verify_iat": False})
    assert claims["iat"] == int(issued.timestamp())
    assert claims["exp"] == claims["iat"] + 24 * 60 * 60
