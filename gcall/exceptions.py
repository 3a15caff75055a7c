"""
Base exception for gcall.

Every error raised by the package derives from GCallError so the CLI can
report it and exit non-zero.
"""


class GCallError(Exception):
    """Base exception for gcall operations."""

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error
