"""Error taxonomy for the authentication core.

Credential-semantic failures are deliberately coarse: callers learn *that*
something failed, never *which* check failed.
"""

INVALID_CREDENTIALS = "invalid credentials"
INVALID_TOKEN = "invalid token"
INVALID_REFRESH_TOKEN = "invalid refresh token"
REGISTRATION_CONFLICT = "username or email already registered"


class AuthCoreError(Exception):
    """Base authentication error."""

    default_message = "authentication error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AuthCoreError):
    """Malformed input or a uniqueness conflict at registration."""

    default_message = REGISTRATION_CONFLICT


class AuthError(AuthCoreError):
    """Wrong username or wrong password; the two are indistinguishable."""

    default_message = INVALID_CREDENTIALS


class InvalidTokenError(AuthCoreError):
    """Bad signature, expired, revoked or wrong-purpose JWT."""

    default_message = INVALID_TOKEN


class ConflictError(Exception):
    """Store-level unique constraint violation on user creation."""

    pass
