"""
Error taxonomy for the config backend. Each error carries the HTTP status it maps to;
main.py renders them as {"success": false, "error": ...} with optional details.
"""


class ConfigBackendError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str | None = None, *, details: str | None = None):
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)

    def describe(self) -> str:
        """Message plus upstream detail, for logs and the non-production details field."""
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class ValidationError(ConfigBackendError):
    """Missing or malformed request fields."""
    status_code = 400
    message = "Invalid request"


class AuthenticationError(ConfigBackendError):
    status_code = 401
    message = "Authentication failed"


class InvalidCredentials(AuthenticationError):
    """Same error for unknown user and wrong password (no user enumeration)."""
    message = "Invalid credentials"


class MissingToken(AuthenticationError):
    message = "Access token required"


class InvalidOrExpiredToken(AuthenticationError):
    status_code = 403
    message = "Invalid or expired token"


class UpstreamError(ConfigBackendError):
    """Key Vault or App Configuration failed, timed out, or returned something unusable."""
    status_code = 500
    message = "Failed to load configuration"


class SecretResolutionError(UpstreamError):
    pass


class ConfigFetchError(UpstreamError):
    pass
