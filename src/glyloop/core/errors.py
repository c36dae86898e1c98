"""Custom exception hierarchy for the Glyloop core.

Every error carries a stable ``code`` (``"<Area>.<Reason>"``) that outer
layers map to responses without parsing messages.
"""


class GlyloopError(Exception):
    """Base exception for all Glyloop errors."""

    code = "Glyloop.Error"
    default_message = "Unexpected error."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


# --- Configuration ---
class ConfigError(GlyloopError):
    """Invalid or missing configuration."""

    code = "Config.Invalid"
    default_message = "Invalid configuration."


# --- Input validation ---
class InvalidInput(GlyloopError):
    """A value object or request parameter failed validation."""

    code = "Validation.InvalidInput"


class InvalidCarbohydrate(InvalidInput):
    code = "Event.InvalidCarbohydrates"
    default_message = "Carbohydrates must be between 0 and 300 grams."


class InvalidInsulinDose(InvalidInput):
    code = "Event.InvalidInsulinDose"
    default_message = (
        "Insulin dose must be between 0 and 100 units in 0.5 increments."
    )


class InvalidExerciseDuration(InvalidInput):
    code = "Event.InvalidExerciseDuration"
    default_message = "Exercise duration must be between 1 and 300 minutes."


class InvalidNoteText(InvalidInput):
    code = "Event.InvalidNoteText"
    default_message = "Note text must be between 1 and 500 characters."


class InvalidTirRange(InvalidInput):
    code = "User.InvalidTirRange"
    default_message = (
        "TIR range lower bound must be less than upper bound, "
        "and both must be between 0 and 1000."
    )


class InvalidIdentifier(InvalidInput):
    code = "Validation.InvalidIdentifier"
    default_message = "Identifier is empty or not positive."


class InvalidInsulinDetail(InvalidInput):
    code = "Event.InvalidInsulinDetail"
    default_message = (
        "Insulin preparation, delivery and timing must not exceed 200 characters."
    )


class InvalidPagination(InvalidInput):
    code = "Validation.InvalidPagination"
    default_message = "Invalid paging or date range parameters."


# --- Temporal ---
class FutureTimestamp(GlyloopError):
    """A timestamp lies after the clock's current time."""

    code = "Validation.FutureTimestamp"


class EventTimeInFuture(FutureTimestamp):
    code = "Event.EventInFuture"
    default_message = "Event time cannot be in the future."


# --- Lookup / access ---
class NotFound(GlyloopError):
    code = "Resource.NotFound"


class EventNotFound(NotFound):
    code = "Event.NotFound"
    default_message = "Event not found."


class Forbidden(GlyloopError):
    code = "Authorization.Forbidden"


class AuthorizationForbidden(Forbidden):
    default_message = "User does not own this event."


class InvalidType(GlyloopError):
    code = "Resource.InvalidType"


class EventInvalidType(InvalidType):
    code = "Event.InvalidType"
    default_message = "Event outcome is only available for food events."


# --- Analytics ---
class InvalidRange(GlyloopError):
    """Unsupported chart / TIR duration selector."""

    code = "Chart.InvalidRange"

    def __init__(self, value: object, allowed: tuple[int, ...]) -> None:
        self.value = value
        self.allowed = allowed
        allowed_str = ", ".join(str(h) for h in allowed)
        super().__init__(f"Range must be one of: {allowed_str} hours (got {value!r}).")


# --- Upstream ---
class UpstreamFailure(GlyloopError):
    """A collaborator (glucose source, event store) failed.

    The core never raises or wraps these; source implementations do.
    """

    code = "Upstream.Failure"


class GlucoseSourceError(UpstreamFailure):
    code = "GlucoseReadingService.Error"
    default_message = "Failed to get glucose readings."
