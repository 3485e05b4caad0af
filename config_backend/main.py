"""
Config backend: JWT login for a single demo user, and authenticated reads of App Configuration
settings whose connection string lives in Key Vault. Port 3001 by default.
"""
import html
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config_backend.auth import AuthGateway
from config_backend.auth_routes import router as auth_router
from config_backend.config import SERVICE_NAME, Settings, load_settings
from config_backend.config_routes import router as config_router
from config_backend.errors import ConfigBackendError, UpstreamError
from config_backend.proxy import ConfigProxy
from config_backend.schemas import ErrorResponse, HealthResponse
from config_backend.stores import (
    AppConfigurationSettingsStore,
    KeyVaultSecretStore,
    SecretStore,
    SettingsStoreFactory,
)
from config_backend.users import UserStore, seed_users

logger = logging.getLogger(__name__)


def _error_body(message: str, details: str | None, settings: Settings) -> dict:
    body = ErrorResponse(error=message, details=details if settings.expose_error_details else None)
    return body.model_dump(exclude_none=True)


def create_app(
    settings: Settings | None = None,
    *,
    secret_store: SecretStore | None = None,
    settings_store_factory: SettingsStoreFactory | None = None,
    users: UserStore | None = None,
) -> FastAPI:
    """
    Build the app with explicit collaborators. Anything not injected is built from settings
    (Key Vault + App Configuration via DefaultAzureCredential).
    """
    if settings is None:
        settings = load_settings()
    if users is None:
        users = seed_users(settings)
    if secret_store is None:
        secret_store = KeyVaultSecretStore(settings.key_vault_url)
    if settings_store_factory is None:
        settings_store_factory = AppConfigurationSettingsStore

    proxy = ConfigProxy(secret_store, settings_store_factory, settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "%s ready (settings client policy=%s, upstream timeout=%gs)",
            SERVICE_NAME,
            settings.settings_client_policy,
            settings.upstream_timeout_seconds,
        )
        try:
            yield
        finally:
            await proxy.close()

    app = FastAPI(title="Config Backend", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.gateway = AuthGateway(users, settings)
    app.state.proxy = proxy

    # Registered before CORS so it sits inside it: catch-all 500s still get CORS headers
    @app.middleware("http")
    async def unhandled_errors(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            return JSONResponse(
                status_code=500,
                content=_error_body("Internal server error", str(exc), settings),
            )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(auth_router, tags=["auth"])
    app.include_router(config_router, tags=["config"])

    @app.exception_handler(ConfigBackendError)
    async def config_backend_error_handler(request: Request, exc: ConfigBackendError):
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.message, exc.details, settings),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content=_error_body("Invalid request body", str(exc.errors()), settings),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(str(exc.detail), None, settings),
            headers=getattr(exc, "headers", None),
        )

    @app.get("/api/health", response_model=HealthResponse)
    def health():
        """Health check endpoint."""
        return HealthResponse(timestamp=datetime.now(timezone.utc), service=SERVICE_NAME)

    @app.get("/", response_class=HTMLResponse)
    async def home():
        """Legacy landing page: promo banner, checkout flag, and the API endpoint list."""
        try:
            config = await proxy.get_all_config()
        except UpstreamError as e:
            logger.error("Error loading settings for landing page: %s", e.describe())
            detail = f"<p>{html.escape(e.describe())}</p>" if settings.expose_error_details else ""
            return HTMLResponse(
                f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Error</title></head>
<body>
  <h1>Error loading settings</h1>
  {detail}
</body>
</html>""",
                status_code=500,
            )

        banner_text = html.escape(config.promoBanner.text or "")
        banner_color = html.escape(config.promoBanner.color or "", quote=True)
        checkout = "Enabled" if config.features.newCheckout else "Disabled"
        frontend = html.escape(settings.frontend_url, quote=True)
        return HTMLResponse(
            f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>App Configuration + Key Vault Demo</title>
  <style>
    .banner {{ background-color: {banner_color}; color: white; padding: 20px; text-align: center; font-size: 24px; margin-bottom: 20px; }}
    .api-info {{ background-color: #f0f0f0; padding: 15px; margin: 20px 0; border-radius: 5px; }}
  </style>
</head>
<body>
  <div class="banner">{banner_text}</div>
  <h1>Welcome to the store!</h1>
  <p>New Checkout Feature: {checkout}</p>
  <p><small>Configuration securely stored in Key Vault</small></p>
  <div class="api-info">
    <h3>API Endpoints Available:</h3>
    <ul>
      <li><strong>POST</strong> /api/auth/login - User authentication</li>
      <li><strong>GET</strong> /api/auth/profile - Get user profile (requires auth)</li>
      <li><strong>GET</strong> /api/config - Get all configuration settings (requires auth)</li>
      <li><strong>GET</strong> /api/config/:key - Get specific setting (requires auth)</li>
      <li><strong>GET</strong> /api/health - Health check</li>
    </ul>
    <p><strong>Frontend URL:</strong> <a href="{frontend}">{frontend}</a></p>
  </div>
</body>
</html>"""
        )

    return app


if __name__ == "__main__":
    import uvicorn

    _settings = load_settings()
    logging.basicConfig(
        level=_settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    uvicorn.run(create_app(_settings), host=_settings.host, port=_settings.port)
