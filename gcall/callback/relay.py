"""
Single-slot hand-off between the redirect listener and the coordinator.

The listener pushes the authorization code; the coordinator waits for it
with a deadline. The first push wins and the relay closes once the wait
returns, so duplicate callbacks are dropped without blocking.
"""

import logging
import queue
import threading
from typing import Optional

logger = logging.getLogger(__name__)


class CodeRelay:
    """
    Rendezvous point for one authorization code per flow.

    Usage:
        relay = CodeRelay()
        relay.open()                 # coordinator, before showing the URL
        relay.push("4/0Ab...")       # listener thread
        code = relay.wait(30.0)      # coordinator, None on timeout
    """

    def __init__(self):
        self._slot: queue.Queue[str] = queue.Queue(maxsize=1)
        self._closed = threading.Event()
        self._lock = threading.Lock()

    def open(self) -> None:
        """Arm the relay for a new flow, discarding any stale code."""
        with self._lock:
            while True:
                try:
                    self._slot.get_nowait()
                except queue.Empty:
                    break
            self._closed.clear()

    def push(self, code: str) -> bool:
        """
        Offer a code without blocking.

        Args:
            code: Authorization code from the redirect (may be empty)

        Returns:
            True if the code was accepted, False if it was dropped
        """
        with self._lock:
            if self._closed.is_set():
                logger.warning("Dropping authorization code: no flow is waiting")
                return False
            try:
                self._slot.put_nowait(code)
            except queue.Full:
                logger.warning("Dropping duplicate authorization code")
                return False
        return True

    def wait(self, timeout: float) -> Optional[str]:
        """
        Block until a code arrives or the timeout elapses.

        Args:
            timeout: Maximum seconds to wait

        Returns:
            The authorization code, or None on timeout
        """
        try:
            return self._slot.get(timeout=timeout)
        except queue.Empty:
            return None
        finally:
            self._closed.set()
