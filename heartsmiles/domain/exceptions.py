"""Domain and pipeline exceptions."""


class DomainError(Exception):
    """Base exception for domain errors.

    Domain errors are expected outcomes of a request (bad input, missing
    records) and are reported to the client as ``{"error": <message>}``.
    """

    status_code = 400


class ValidationError(DomainError):
    """Raised when domain validation fails."""

    status_code = 400


class AuthenticationError(DomainError):
    """Raised when credentials or tokens are missing or invalid."""

    status_code = 401


class PermissionDeniedError(DomainError):
    """Raised when the authenticated staff member may not do something."""

    status_code = 403


class NotFoundError(DomainError):
    """Raised when a requested record does not exist."""

    status_code = 404

    def __init__(self, resource: str, resource_id: int | str):
        super().__init__(f"{resource} not found")
        self.resource = resource
        self.resource_id = resource_id


class ConflictError(DomainError):
    """Raised when creating a record that already exists."""

    status_code = 409


class AuthNotConfiguredError(DomainError):
    """Raised when authentication is used without a signing secret."""

    status_code = 503

    def __init__(self) -> None:
        super().__init__("Authentication is not configured")


class PipelineError(Exception):
    """Base exception for failures of the request pipeline itself.

    These go through the error envelope, so their message is only shown
    in development.
    """

    status_code = 500


class PayloadTooLargeError(PipelineError):
    """Raised when a request body exceeds the configured ceiling."""

    status_code = 413

    def __init__(self, size: int, limit: int):
        super().__init__(f"request entity too large ({size} > {limit} bytes)")
        self.size = size
        self.limit = limit


class DependencyUnavailableError(PipelineError):
    """Raised when a backing service failed to initialize or is unreachable."""

    status_code = 503

    def __init__(self, dependency: str, reason: str | None = None):
        message = f"{dependency} is unavailable"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.dependency = dependency
