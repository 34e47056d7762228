class ClientError(Exception):
    """Base class for client-side failures."""


class ClientConfigError(ClientError):
    pass


class ClientValidationError(ClientError):
    """A local check failed before any request was sent."""

    def __init__(self, message: str, code: str = "validation_error"):
        super().__init__(message)
        self.message = message
        self.code = code


class GatewayError(ClientError):
    """The service answered with an error envelope (or not at all)."""

    def __init__(self, message: str, code: str = "remote_error", status: int | None = None, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status
        self.details = details or {}
