"""
OAuth redirect listener and the code relay it feeds.
"""

from gcall.callback.relay import CodeRelay
from gcall.callback.server import (
    CallbackServer,
    CallbackServerError,
    create_callback_app,
    serve_in_background,
)

__all__ = [
    "CallbackServer",
    "CallbackServerError",
    "CodeRelay",
    "create_callback_app",
    "serve_in_background",
]
