"""
Config backend settings. Read from the environment once at startup and passed to each component.
No secrets in this file; the signing secret and vault URL come from env.
"""
import logging
import os
import secrets
from dataclasses import dataclass

logger = logging.getLogger(__name__)

SERVICE_NAME = "config-backend"

# Settings store keys rendered by the dashboard
KEY_PROMO_TEXT = "PromoBanner/Text"
KEY_PROMO_COLOR = "PromoBanner/Color"
KEY_NEW_CHECKOUT = "Feature/NewCheckout"

POLICY_PER_REQUEST = "per-request"
POLICY_CACHED = "cached"
_POLICIES = {POLICY_PER_REQUEST, POLICY_CACHED}

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    host: str = "127.0.0.1"
    port: int = 3001
    # Single origin allowed for cross-origin calls (the React dashboard)
    frontend_url: str = "http://localhost:3000"
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    session_token_ttl_seconds: int = 24 * 60 * 60
    key_vault_url: str = ""
    # Key Vault secret holding the App Configuration connection string
    connection_string_secret_name: str = "AppConfigConnectionString"
    # per-request: resolve secret + build client on every call; cached: reuse until TTL (0 = forever)
    settings_client_policy: str = POLICY_PER_REQUEST
    settings_client_ttl_seconds: float = 0
    # Upper bound for any single Key Vault / App Configuration call
    upstream_timeout_seconds: float = 10.0
    expose_error_details: bool = False
    bcrypt_rounds: int = 10
    demo_username: str = "demo@ltimindtree.com"
    demo_password: str = "password123"
    demo_name: str = "Demo User"
    log_level: str = "INFO"

    def __post_init__(self):
        if self.settings_client_policy not in _POLICIES:
            raise ValueError(
                f"settings_client_policy must be one of {sorted(_POLICIES)}, got {self.settings_client_policy!r}"
            )
        if self.upstream_timeout_seconds <= 0:
            raise ValueError("upstream_timeout_seconds must be positive")


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in _TRUTHY


def load_settings() -> Settings:
    """Build Settings from the environment. Generates an ephemeral JWT secret if none is configured."""
    jwt_secret = os.environ.get("JWT_SECRET", "")
    if not jwt_secret:
        jwt_secret = secrets.token_urlsafe(32)
        logger.warning("JWT_SECRET not set; using a random secret (tokens will not survive a restart)")

    app_env = os.environ.get("APP_ENV", "production").strip().lower()

    return Settings(
        host=os.environ.get("HOST", "127.0.0.1"),
        port=int(os.environ.get("PORT", "3001")),
        frontend_url=os.environ.get("FRONTEND_URL", "http://localhost:3000").rstrip("/"),
        jwt_secret=jwt_secret,
        session_token_ttl_seconds=int(os.environ.get("SESSION_TOKEN_TTL_SECONDS", str(24 * 60 * 60))),
        key_vault_url=os.environ.get("KEY_VAULT_URL", "").strip(),
        connection_string_secret_name=os.environ.get("APP_CONFIG_SECRET_NAME", "AppConfigConnectionString"),
        settings_client_policy=os.environ.get("SETTINGS_CLIENT_POLICY", POLICY_PER_REQUEST).strip().lower(),
        settings_client_ttl_seconds=float(os.environ.get("SETTINGS_CLIENT_TTL_SECONDS", "0")),
        upstream_timeout_seconds=float(os.environ.get("UPSTREAM_TIMEOUT_SECONDS", "10")),
        expose_error_details=app_env == "development" or _env_flag("EXPOSE_ERROR_DETAILS"),
        bcrypt_rounds=int(os.environ.get("BCRYPT_ROUNDS", "10")),
        demo_username=os.environ.get("DEMO_USER_USERNAME", "demo@ltimindtree.com"),
        demo_password=os.environ.get("DEMO_USER_PASSWORD", "password123"),
        demo_name=os.environ.get("DEMO_USER_NAME", "Demo User"),
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )
