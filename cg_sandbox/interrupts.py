"""Turn termination signals into exceptions so teardown still runs."""

from __future__ import annotations

import logging
import signal
from typing import Callable, Dict

from cg_common.errors import SandboxInterrupted

logger = logging.getLogger(__name__)

GUARDED_SIGNALS = (signal.SIGTERM, signal.SIGHUP)


class TerminationGuard:
    """
    Context manager raising ``SandboxInterrupted`` on SIGTERM/SIGHUP.

    SIGINT is left alone: Python already raises ``KeyboardInterrupt``.
    Handlers can only be installed from the main thread; elsewhere the
    guard is a no-op.
    """

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._prev_handlers: Dict[int, Callable] = {}

    def _handle_signal(self, signum: int, frame) -> None:  # type: ignore[no-untyped-def]
        name = signal.Signals(signum).name
        logger.warning("Received %s, tearing down the sandbox", name)
        raise SandboxInterrupted(f"Interrupted by {name}", context={"signal": name})

    def install(self) -> None:
        if not self.enabled:
            return
        for sig in GUARDED_SIGNALS:
            try:
                self._prev_handlers[sig] = signal.getsignal(sig)
                signal.signal(sig, self._handle_signal)
            except ValueError:
                logger.debug("Cannot install handler for %s outside the main thread", sig)
                self._prev_handlers.pop(sig, None)

    def restore(self) -> None:
        for sig, handler in self._prev_handlers.items():
            signal.signal(sig, handler)
        self._prev_handlers.clear()

    def __enter__(self) -> "TerminationGuard":
        self.install()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.restore()
