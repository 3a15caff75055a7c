"""
Google Calendar integration for gcall.

Creates instant events with a Google Meet conference attached.
"""

from gcall.integrations.google_calendar.client import InstantMeetingClient
from gcall.integrations.google_calendar.exceptions import (
    GoogleCalendarAuthError,
    GoogleCalendarConferenceError,
    GoogleCalendarError,
    GoogleCalendarNotFoundError,
    GoogleCalendarQuotaError,
    GoogleCalendarRateLimitError,
    GoogleCalendarServerError,
)

__all__ = [
    "InstantMeetingClient",
    "GoogleCalendarError",
    "GoogleCalendarAuthError",
    "GoogleCalendarConferenceError",
    "GoogleCalendarNotFoundError",
    "GoogleCalendarQuotaError",
    "GoogleCalendarRateLimitError",
    "GoogleCalendarServerError",
]
