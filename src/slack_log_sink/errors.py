"""Exception types raised by the sink."""


class SlackSinkError(Exception):
    """Base class for all sink errors."""


class ConfigurationError(SlackSinkError, ValueError):
    """Invalid sink configuration. Raised at construction, before any thread starts."""


class DeliveryError(SlackSinkError):
    """A webhook POST failed.

    ``status_code`` is the HTTP status for rejected requests, or None when the
    request never got a response (connection failure, timeout).
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
