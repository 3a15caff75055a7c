"""
Google Calendar API client for creating instant Meet calls.

Creates an event starting now on the primary calendar with a Google Meet
conference attached and returns the video link.
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build, Resource
from googleapiclient.errors import HttpError
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception,
)

from gcall.integrations.google_calendar.exceptions import (
    GoogleCalendarError,
    GoogleCalendarAuthError,
    GoogleCalendarConferenceError,
    GoogleCalendarQuotaError,
    GoogleCalendarNotFoundError,
    GoogleCalendarRateLimitError,
    GoogleCalendarServerError,
)

logger = logging.getLogger(__name__)

PRIMARY_CALENDAR = "primary"
DEFAULT_TIME_ZONE = "Europe/Bucharest"


def _is_retryable_error(exception: Exception) -> bool:
    """Check if an exception should trigger a retry."""
    if isinstance(exception, GoogleCalendarError):
        return exception.retryable
    if isinstance(exception, HttpError):
        return exception.resp.status in (429, 500, 503)
    return False


def _handle_http_error(error: HttpError) -> None:
    """Convert HttpError to appropriate GoogleCalendarError."""
    status = error.resp.status
    message = str(error)

    if status == 401:
        raise GoogleCalendarAuthError(
            "Authentication failed - cached token may be revoked or expired",
            original_error=error,
        )
    elif status == 403:
        if "quota" in message.lower() or "rate limit" in message.lower():
            raise GoogleCalendarQuotaError(
                "API quota exceeded",
                original_error=error,
            )
        raise GoogleCalendarAuthError(
            "Access denied - check the granted calendar scopes",
            original_error=error,
        )
    elif status == 404:
        raise GoogleCalendarNotFoundError(
            "Calendar not found",
            original_error=error,
        )
    elif status == 429:
        raise GoogleCalendarRateLimitError(
            "Rate limit exceeded - too many requests",
            original_error=error,
        )
    elif status in (500, 503):
        raise GoogleCalendarServerError(
            f"Google Calendar API unavailable ({status})",
            original_error=error,
        )
    else:
        raise GoogleCalendarError(
            f"Google Calendar API error ({status}): {message}",
            original_error=error,
        )


def build_instant_event(
    name: str,
    duration: timedelta,
    time_zone: str,
    now: Optional[datetime] = None,
) -> dict:
    """
    Build the event body for an instant call.

    Args:
        name: Event summary
        duration: Meeting length
        time_zone: IANA time zone for start and end
        now: Start time (defaults to the current time)

    Returns:
        Event data in Google Calendar format
    """
    start = now or datetime.now(ZoneInfo(time_zone))
    end = start + duration
    return {
        "summary": name,
        "start": {"dateTime": start.isoformat(), "timeZone": time_zone},
        "end": {"dateTime": end.isoformat(), "timeZone": time_zone},
        "conferenceData": {
            "createRequest": {
                "requestId": str(uuid.uuid4()),
                "conferenceSolutionKey": {"type": "hangoutsMeet"},
            }
        },
    }


def extract_video_link(event: dict) -> str:
    """
    Pull the Meet link out of a created event.

    Raises:
        GoogleCalendarConferenceError: If the event carries no video entry point
    """
    entry_points = (event.get("conferenceData") or {}).get("entryPoints")
    if not entry_points:
        raise GoogleCalendarConferenceError("Could not create event: no entry points")

    for entry_point in entry_points:
        if entry_point.get("entryPointType") == "video":
            return entry_point["uri"]

    raise GoogleCalendarConferenceError("Could not create event: no video entry point")


class InstantMeetingClient:
    """
    Wrapper around Google Calendar API v3 for instant calls.

    Provides:
    - Automatic retry with exponential backoff
    - Consistent error handling
    """

    def __init__(self, credentials: Credentials, time_zone: str = DEFAULT_TIME_ZONE):
        """
        Initialize the client.

        Args:
            credentials: Google OAuth2 credentials
            time_zone: IANA time zone for created events
        """
        self.time_zone = time_zone
        self._service: Resource = build(
            "calendar",
            "v3",
            credentials=credentials,
            cache_discovery=False,
        )

    @property
    def service(self) -> Resource:
        """Get the underlying Google API service."""
        return self._service

    def create_instant_call(self, name: str, duration: timedelta) -> str:
        """
        Create an event starting now with a Meet conference.

        Args:
            name: Event summary
            duration: Meeting length

        Returns:
            The Google Meet link
        """
        body = build_instant_event(name, duration, self.time_zone)
        event = self.insert_event(PRIMARY_CALENDAR, body)
        return extract_video_link(event)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception(_is_retryable_error),
        reraise=True,
    )
    def insert_event(self, calendar_id: str, body: dict) -> dict:
        """
        Create a new event with conference data.

        Args:
            calendar_id: Calendar to create event in
            body: Event data in Google Calendar format

        Returns:
            Created event with ID and conference data
        """
        try:
            result = self._service.events().insert(
                calendarId=calendar_id,
                body=body,
                conferenceDataVersion=1,
            ).execute()
            logger.info(f"Created event {result.get('id')} in {calendar_id}")
            return result
        except HttpError as e:
            _handle_http_error(e)
