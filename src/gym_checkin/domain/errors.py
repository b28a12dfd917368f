"""Errors raised by the session tracker."""


class SessionTrackingError(Exception):
    """Base class for check-in precondition failures.

    The message is safe to show to the originating client.
    """

    message = "Session tracking failed"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class MemberUnavailableError(SessionTrackingError):
    """Member does not exist, is not a member, or is disabled."""

    message = "Member not found or inactive"


class ActiveSessionExistsError(SessionTrackingError):
    """Member already has an open session."""

    message = "Member already has an active session"


class SessionNotFoundError(SessionTrackingError):
    """No session exists for the given id."""

    message = "Session not found"


class SessionAlreadyClosedError(SessionTrackingError):
    """The session already has a check-out time."""

    message = "Session already checked out"


class AdminRequiredError(SessionTrackingError):
    """Operation restricted to admin operators."""

    message = "Admin privileges required"


class UnknownRoleError(SessionTrackingError):
    """A connection declared a role that maps to no room."""

    def __init__(self, role: str) -> None:
        super().__init__(f"Unknown role: {role}")


class ActiveSessionConflictError(Exception):
    """Raised by the session store when the one-open-session index rejects a row."""
