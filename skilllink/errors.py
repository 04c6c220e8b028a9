"""
Domain errors raised by the services and turned into JSON responses by the
handlers registered in skilllink.main.

Each class carries the HTTP status it maps to. The base classes follow the
failure taxonomy (unauthorized, forbidden, not found, conflict, invalid
input, upstream failure); the subclasses name the specific booking and
review failures so callers can tell them apart.
"""


class DomainError(Exception):
    status_code = 500
    reason = "Internal server error"

    def __init__(self, reason=None):
        self.reason = reason or self.reason
        super().__init__(self.reason)


class Unauthorized(DomainError):
    status_code = 401
    reason = "Unauthorized"


class Forbidden(DomainError):
    status_code = 403
    reason = "Forbidden"


class NotFound(DomainError):
    status_code = 404
    reason = "Not found"


class Conflict(DomainError):
    status_code = 409
    reason = "Conflict"


class InvalidInput(DomainError):
    status_code = 400
    reason = "Invalid input"


class UpstreamFailure(DomainError):
    status_code = 500
    reason = "Upstream failure"


class SlotNotFound(NotFound):
    # Slot lookup failure on booking creation is reported as a bad request
    status_code = 400
    reason = "Slot not found"


class SlotUnavailable(Conflict):
    reason = "Slot is already booked."


class InvalidTransition(InvalidInput):
    reason = "Invalid status transition"


class NotCompleted(InvalidInput):
    reason = "Cannot review a booking that is not completed"


class AlreadyReviewed(Conflict):
    status_code = 400
    reason = "You have already reviewed this booking"


class InvalidRating(InvalidInput):
    reason = "Invalid review data"
