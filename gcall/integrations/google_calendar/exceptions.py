"""
Custom exceptions for Google Calendar operations.

Provides structured error handling with retryable flags.
"""

from gcall.exceptions import GCallError


class GoogleCalendarError(GCallError):
    """Base exception for Google Calendar operations."""

    retryable: bool = False


class GoogleCalendarAuthError(GoogleCalendarError):
    """
    Authentication or authorization failure.

    Causes:
    - Cached token revoked or expired without a refresh token
    - Insufficient scopes
    """

    retryable = False


class GoogleCalendarQuotaError(GoogleCalendarError):
    """
    API quota exceeded.

    Retryable after backoff.
    """

    retryable = True


class GoogleCalendarNotFoundError(GoogleCalendarError):
    """The primary calendar could not be found."""

    retryable = False


class GoogleCalendarRateLimitError(GoogleCalendarError):
    """
    Rate limit hit (429 response).

    Retryable after exponential backoff.
    """

    retryable = True


class GoogleCalendarConferenceError(GoogleCalendarError):
    """
    The event was created without a usable Meet link.

    Causes:
    - No conference entry points in the response
    - No video entry point
    """

    retryable = False


class GoogleCalendarServerError(GoogleCalendarError):
    """
    Google returned a 5xx response.

    Retryable after exponential backoff.
    """

    retryable = True
