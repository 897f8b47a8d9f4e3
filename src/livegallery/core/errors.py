"""Error taxonomy shared by the core services and the HTTP layer.

Every error carries the HTTP status it maps to so that the API layer can
translate it without a lookup table.  Messages are written to be safe for
clients; internal details belong in the server log, not in ``message``.
"""

from __future__ import annotations


class GalleryError(Exception):
    """Base application error with a client-safe message."""

    status_code = 500
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message)
        self.message = message


class InputValidationError(GalleryError):
    """Malformed or out-of-range client input."""

    status_code = 400
    error_code = "VALIDATION_ERROR"


class AuthError(GalleryError):
    """Missing or expired session, or a wrong password."""

    status_code = 401
    error_code = "AUTH_ERROR"

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class NotFoundError(GalleryError):
    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message)


class PayloadTooLargeError(GalleryError):
    status_code = 413
    error_code = "PAYLOAD_TOO_LARGE"


class UpstreamError(GalleryError):
    """A call to an external collaborator failed."""

    status_code = 500
    error_code = "UPSTREAM_ERROR"


class AssetStoreError(UpstreamError):
    """Raised by asset store adapters when the remote service fails."""


class OrderIndexError(InputValidationError, IndexError):
    """A move referenced a position outside the order list."""
