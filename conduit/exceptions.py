"""
Error taxonomy shared by the service layer.

Services raise these as soon as a precondition fails; the application
installs a single exception handler (see ``conduit.main``) that turns any
``APIError`` into a JSON response using ``status_code`` and ``body``.
"""


class APIError(Exception):
    """Base class for errors that map onto an HTTP status and JSON body."""

    status_code: int = 500

    def __init__(self, body: dict | None = None) -> None:
        self.body = body if body is not None else {}
        super().__init__(self.body)


class ValidationError(APIError):
    """A field-level precondition failed, e.g. ``{"title": ["can't be blank"]}``."""

    status_code = 422

    def __init__(self, field: str, message: str = "can't be blank") -> None:
        self.field = field
        self.message = message
        super().__init__({"errors": {field: [message]}})


class Conflict(APIError):
    """A uniqueness rule was violated (slug derived from the title)."""

    status_code = 422

    def __init__(self, field: str = "title", message: str = "must be unique") -> None:
        self.field = field
        super().__init__({"errors": {field: [message]}})


class NotFound(APIError):
    status_code = 404

    def __init__(self, resource: str) -> None:
        self.resource = resource
        super().__init__({"errors": {resource: ["not found"]}})


class Forbidden(APIError):
    status_code = 403

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__({"message": message})


class Unauthorized(APIError):
    """Raised by the auth-token layer, never by the services."""

    status_code = 401

    def __init__(self, message: str = "missing authorization credentials") -> None:
        super().__init__({"status": "error", "message": message})
