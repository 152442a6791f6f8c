"""
Exception taxonomy for the geofence console.

Local errors (validation, authorization) are raised before any network call.
Remote errors are always reported as PersistenceError.
"""
from __future__ import annotations


class GeofenceConsoleError(Exception):
    """Base class for all geofence console errors."""


class ValidationError(GeofenceConsoleError):
    """One or more input fields are invalid. Never reaches the backend."""

    def __init__(self, field_errors: dict[str, str]) -> None:
        self.field_errors = dict(field_errors)
        super().__init__(
            "; ".join(f"{field}: {message}" for field, message in self.field_errors.items())
        )


class InsufficientPointsError(ValidationError):
    """Fewer than three boundary points were captured."""

    def __init__(self, count: int, required: int = 3) -> None:
        self.count = count
        self.required = required
        super().__init__(
            {"polygon": f"At least {required} points are required to create a geofence (got {count})"}
        )


class AuthorizationError(GeofenceConsoleError):
    """The current actor's role does not allow the requested mutation."""


class AuthenticationError(GeofenceConsoleError):
    """Login against the backend failed."""


class PersistenceError(GeofenceConsoleError):
    """The backend rejected or failed a request."""

    def __init__(self, message: str, status: int | None = None) -> None:
        self.message = message
        self.status = status
        super().__init__(message)
