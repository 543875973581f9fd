"""Exception hierarchy for fortum-fetch."""

from typing import Optional


class FortumFetchError(Exception):
    """Base class for all fortum-fetch errors."""


class ConfigError(FortumFetchError, ValueError):
    """Missing or invalid configuration (credentials, URL, numeric settings)."""


# Browser automation

class BrowserError(FortumFetchError):
    """A browser action could not be completed."""


class BrowserTimeoutError(BrowserError):
    """A browser action did not complete within its timeout."""


class PhaseTimeoutError(BrowserTimeoutError):
    """The deadline for a sequence of browser actions elapsed."""


class BrowserActionError(BrowserError):
    """A browser action failed for a reason other than a timeout."""


# Authentication

class AuthError(FortumFetchError):
    """Authentication failed during a specific login phase.

    Attributes:
        phase: Name of the phase that failed (navigate, credentials, submit, token)
        cause: The underlying exception, if any
    """

    phase = "unknown"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause

    def __str__(self) -> str:
        message = super().__str__()
        if self.cause is not None:
            return f"{message}: {self.cause}"
        return message


class NavigationError(AuthError):
    """The login page could not be loaded."""

    phase = "navigate"


class FormInteractionError(AuthError):
    """The credential fields could not be filled."""

    phase = "credentials"


class LoginFailedError(AuthError):
    """Submitting the login form did not remove the login form."""

    phase = "submit"


class TokenTimeoutError(AuthError):
    """The access token never appeared in session storage."""

    phase = "token"


# REST API

class APIError(FortumFetchError):
    """Base class for portal API errors."""


class RequestStatusError(APIError):
    """The API answered with an unexpected HTTP status."""

    def __init__(self, message: str, status: int):
        super().__init__(message)
        self.message = message
        self.status = status

    def __str__(self) -> str:
        return f"{self.message} (status {self.status})"


class APIResponseError(APIError):
    """The API response could not be parsed or reported an error."""


class TemplateError(FortumFetchError):
    """An output template is invalid or could not be rendered."""
