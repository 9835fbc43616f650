"""Jenkins-specific exceptions for error handling."""


class JenkinsError(Exception):
    """Base exception for all Jenkins script operations."""
    pass


class TransportError(JenkinsError):
    """HTTP failure talking to the Jenkins script console.

    Attributes:
        status_code: HTTP status code (None when no response was received)
        message: Response body or connection error text
        endpoint: URL that failed
    """

    def __init__(self, status_code, message: str, endpoint: str):
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        if status_code is None:
            super().__init__(f"{endpoint}: {message}")
        else:
            super().__init__(f"[{status_code}] {endpoint}: {message}")


class ProtocolError(JenkinsError):
    """Response body is not a valid result envelope."""
    pass


class DomainError(JenkinsError):
    """The script ran and reported a failure (``error: true``).

    ``str(err)`` is exactly the server-provided message.
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class TemplateError(JenkinsError):
    """A Groovy command template could not be rendered."""
    pass


class UserAlreadyExistsError(DomainError):
    """User creation refused - the username is already in the local database."""
    pass
