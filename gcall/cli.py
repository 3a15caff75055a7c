"""
Command-line entry point for gcall.

Authorizes against Google Calendar (from the token cache or through the
browser), creates an instant Meet call, prints the link and copies it to
the clipboard.
"""

import argparse
import logging
from datetime import timedelta
from typing import Optional

from pydantic import ValidationError

from gcall import __version__
from gcall.auth import AuthorizationCoordinator, GoogleOAuthFlow, TokenCache
from gcall.callback import CallbackServer, CodeRelay, serve_in_background
from gcall.clipboard import copy_to_clipboard
from gcall.config import Settings, get_settings
from gcall.exceptions import GCallError
from gcall.integrations.google_calendar import InstantMeetingClient

logger = logging.getLogger(__name__)

DEFAULT_MEETING_NAME = "Instant Meeting"
DEFAULT_DURATION_MINUTES = 60


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError("must be a positive number of minutes")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gcall",
        description="Create an instant Google Meet call and copy its link.",
    )
    parser.add_argument(
        "--name",
        default=DEFAULT_MEETING_NAME,
        help=f"Name of the meeting (default: {DEFAULT_MEETING_NAME!r}).",
    )
    parser.add_argument(
        "--duration",
        type=_positive_int,
        default=DEFAULT_DURATION_MINUTES,
        help=f"Duration of the meeting in minutes (default: {DEFAULT_DURATION_MINUTES}).",
    )
    parser.add_argument(
        "--no-copy",
        action="store_true",
        help="Print the link without copying it to the clipboard.",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Override the configured logging level.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_meeting(settings: Settings, relay: CodeRelay, name: str, duration: timedelta) -> str:
    """
    Authorize and create the instant call.

    The redirect listener feeding `relay` must already be running.

    Returns:
        The Google Meet link
    """
    flow = GoogleOAuthFlow.from_credentials_file(
        settings.credentials_path,
        redirect_uri=settings.redirect_uri,
    )
    coordinator = AuthorizationCoordinator(
        flow,
        TokenCache(settings.token_cache_path),
        relay,
        timeout=settings.auth_approval_timeout,
        state_token=settings.oauth_state,
    )
    token = coordinator.authorize()

    client = InstantMeetingClient(flow.build_credentials(token), time_zone=settings.time_zone)
    return client.create_instant_call(name, duration)


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = get_settings()
    except ValidationError as e:
        configure_logging(args.log_level or "INFO")
        logger.error(f"Invalid configuration: {e}")
        return 1
    configure_logging(args.log_level or settings.log_level)

    relay = CodeRelay()
    server = CallbackServer(
        relay,
        host=settings.callback_host,
        port=settings.callback_port,
        path=settings.callback_path,
        shutdown_timeout=settings.shutdown_timeout,
    )

    try:
        with serve_in_background(server, shutdown_timeout=settings.shutdown_timeout):
            link = create_meeting(
                settings,
                relay,
                args.name,
                timedelta(minutes=args.duration),
            )
    except GCallError as e:
        logger.error(e.message)
        return 1

    print(link)

    if not args.no_copy:
        try:
            copy_to_clipboard(link)
        except GCallError as e:
            logger.error(e.message)
            return 1

    return 0
