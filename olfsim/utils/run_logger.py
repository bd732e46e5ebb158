"""
Per-run log sink.

Every RunVars owns one RunLogger. It writes nothing until redirect() is
given a destination file; after disable() it goes quiet again. Calls are
serialized with a lock so worker threads can log without coordinating.
A destination that cannot be opened turns the sink off instead of
failing the run.
"""

import logging
import threading

logger = logging.getLogger(__name__)


class RunLogger:
    """Thread-safe, redirectable log sink for a single run."""

    def __init__(self):
        self._lock = threading.Lock()
        self._handler = None
        self.path = None
        # Constructed directly so it stays out of the getLogger() registry
        # and is freed with its RunVars. Never propagates.
        self._log = logging.Logger("olfsim.run")
        self._log.propagate = False
        self._log.setLevel(logging.INFO)

    def __call__(self, msg=''):
        """Append one line (a blank line if msg is empty)."""
        with self._lock:
            if self._handler is not None:
                self._log.info(msg)

    @property
    def enabled(self):
        return self._handler is not None

    def redirect(self, path):
        """Close the current destination and start appending to path."""
        with self._lock:
            self._close()
            try:
                handler = logging.FileHandler(path, mode='a')
            except OSError as e:
                logger.warning(f"Cannot open run log {path}: {e}; "
                               f"run logging disabled")
                return False
            handler.setFormatter(logging.Formatter('%(message)s'))
            self._log.addHandler(handler)
            self._handler = handler
            self.path = path
            return True

    def disable(self):
        """Shut off output."""
        with self._lock:
            self._close()

    def _close(self):
        if self._handler is not None:
            self._log.removeHandler(self._handler)
            self._handler.close()
            self._handler = None
            self.path = None

    def __deepcopy__(self, memo):
        raise TypeError("RunLogger cannot be copied")
