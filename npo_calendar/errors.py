"""Domain errors raised by the calendar services."""


class CalendarError(Exception):
    """Base class for calendar errors."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class ValidationError(CalendarError, ValueError):
    """Malformed event, category or recurrence rule input.

    Subclasses ValueError so the same checks can run inside pydantic validators.
    """


class Unauthenticated(CalendarError):
    """The request carried an identity that does not resolve to a profile."""


class Forbidden(CalendarError):
    """The principal may see the entity but may not perform the operation."""


class NotFound(CalendarError):
    """The entity does not exist or the principal is not entitled to know it does."""


class ConflictError(CalendarError):
    """A concurrent or duplicate write collided in storage."""
