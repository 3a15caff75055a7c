"""
Copy text to the system clipboard.

Uses pyperclip, which picks the platform mechanism (pbcopy, xclip, xsel,
wl-clipboard, the Windows clipboard API) on first use.
"""

import logging

import pyperclip

from gcall.exceptions import GCallError

logger = logging.getLogger(__name__)


class ClipboardError(GCallError):
    """Text could not be copied to the clipboard."""


def copy_to_clipboard(text: str) -> None:
    """
    Copy text to the clipboard.

    Args:
        text: Text to copy

    Raises:
        ClipboardError: If no clipboard mechanism is available or it fails
    """
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as e:
        raise ClipboardError(
            f"Could not copy to clipboard: {e}",
            original_error=e,
        ) from e

    logger.debug(f"Copied {len(text)} characters to the clipboard")
