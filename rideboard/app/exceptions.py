"""Custom exceptions for the ride core. Each maps to one HTTP status."""


class RideboardError(Exception):
    """Base class for errors surfaced to the caller unchanged."""
    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class UnauthorizedError(RideboardError):
    """Raised when a bearer credential is missing or cannot be resolved."""
    status_code = 401


class BadRequestError(RideboardError):
    """Raised when input is missing or invalid."""
    status_code = 400


class RideNotFoundError(RideboardError):
    """Raised when a ride cannot be found."""
    status_code = 404


class InvalidRideStateError(RideboardError):
    """Raised when a ride is not in a state that allows the operation."""
    status_code = 409


class ForbiddenRideActionError(RideboardError):
    """Raised when the caller has no rights over the ride."""
    status_code = 403
