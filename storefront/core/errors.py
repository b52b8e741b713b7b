# storefront/core/errors.py
"""
Domain error taxonomy.

Services and the record store raise these; `storefront.main` maps each
family to an HTTP status. Messages are safe to show to clients: they never
carry digests, tokens or the signing secret.
"""

from concurrent.futures import Future


class StorefrontError(Exception):
    """Base class for every error raised by the storefront core."""

    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


# ---- Caller input ----


class ValidationError(StorefrontError):
    default_message = "Invalid request"


class InvalidOrder(ValidationError):
    default_message = "Invalid order"


class EmailAlreadyRegistered(ValidationError):
    default_message = "Email already registered"


# ---- Authentication / authorization ----


class AuthError(StorefrontError):
    default_message = "Invalid credentials"


class Unauthenticated(AuthError):
    default_message = "Not authenticated"


class InvalidCredentials(AuthError):
    default_message = "Invalid credentials"


class Forbidden(AuthError):
    default_message = "Invalid or expired token"


class InvalidToken(StorefrontError):
    """Raised by the token service; the auth gate turns it into Forbidden."""

    default_message = "Invalid token"


# ---- Lookups ----


class NotFound(StorefrontError):
    default_message = "Not found"


class UserNotFound(NotFound):
    default_message = "User not found"


class OrderNotFound(NotFound):
    default_message = "Order not found"


# ---- Record store ----


class StoreError(StorefrontError):
    default_message = "Record store error"


class StoreUnavailable(StoreError):
    default_message = "Record store unavailable"


class DuplicateRecord(StoreError):
    default_message = "Duplicate record"


class IntegrityError(StorefrontError):
    default_message = "Operation failed and was rolled back"


class PartialWriteRolledBack(IntegrityError):
    default_message = "Order could not be placed"


# ---- Runtime ----


class Timeout(StorefrontError):
    """
    Raised when bounded work exceeds its time budget.

    `pending` is the still-running future (if any) so callers can attach
    cleanup that must run once the straggler finishes.
    """

    default_message = "Operation timed out"

    def __init__(self, message: str | None = None, pending: Future | None = None):
        super().__init__(message)
        self.pending = pending


class CryptoUnavailable(StorefrontError):
    default_message = "Secure random source unavailable"
