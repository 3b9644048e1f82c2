class ValidationFailure(ValueError):
    """Malformed input to a session transition. State is left untouched."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class InvalidTransitionError(ValidationFailure):
    """Transition requested from a step that does not allow it."""


class SessionMissingError(LookupError):
    """A later step was entered without the session data it depends on."""


class ServiceError(RuntimeError):
    """An external collaborator failed, timed out, or returned an unusable payload."""
