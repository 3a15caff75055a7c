"""
gcall - create an instant Google Meet call from the command line.

Authorizes against Google Calendar with a local OAuth 2.0 redirect
listener, caches the token, and prints the meeting link.
"""

__version__ = "0.1.0"
