"""Error taxonomy shared by the core services and the web layer."""


class NotFound(Exception):
    """Raised when a referenced user, exam or notification does not exist."""

    pass


class UserNotFound(NotFound):
    def __init__(self, user_id: int):
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id


class ExamNotFound(NotFound):
    def __init__(self, exam_id: int):
        super().__init__("Exam not found")
        self.exam_id = exam_id


class NotificationNotFound(NotFound):
    def __init__(self, notification_id: int):
        super().__init__("Notification not found")
        self.notification_id = notification_id


class ValidationError(Exception):
    """Raised for malformed exam, preference or registration input."""

    pass


class AlreadyRegistered(ValidationError):
    def __init__(self, exam_id: int):
        super().__init__("Already registered for this exam")
        self.exam_id = exam_id


class ChannelDeliveryFailure(Exception):
    """
    One channel send failed.

    Collected by the dispatcher and returned to callers; never raised past it.
    """

    def __init__(self, channel: str, reason: str, user_id: int | None = None):
        super().__init__(f"{channel} delivery failed: {reason}")
        self.channel = channel
        self.reason = reason
        self.user_id = user_id


class CalendarAuthFailure(Exception):
    """
    The OAuth handshake with the calendar provider failed.

    `reason` is a short machine-readable code used in the error redirect.
    """

    def __init__(self, reason: str, detail: str | None = None):
        super().__init__(detail or reason)
        self.reason = reason
        self.detail = detail


class CalendarCredentialsExpired(CalendarAuthFailure):
    """Stored refresh token was rejected by the provider."""

    def __init__(self, detail: str | None = None):
        super().__init__("credentials_expired", detail)


class PersistenceFailure(Exception):
    """The database was unavailable or rejected a statement."""

    pass
