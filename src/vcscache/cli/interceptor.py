"""Convert the errors raised by a checkout into exit codes."""

from __future__ import annotations

import logging

from ..errors import CheckoutError, VCSCacheError

log = logging.getLogger("cli")


class Interceptor:
    """
    Context manager logging and suppressing checkout failures.

        interceptor = Interceptor()
        with interceptor:
            orchestrator.run(request)
        raise SystemExit(interceptor.exitcode())

    Library errors are reported with their message only, since they
    already describe what went wrong. Anything else is a bug and we log
    the traceback. KeyboardInterrupt is never suppressed.
    """

    def __init__(self):
        self.error: BaseException | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        if exc_type is None or not issubclass(exc_type, Exception):
            return False
        if isinstance(exc_value, VCSCacheError):
            log.error("operation failed: %s", exc_value)
            if isinstance(exc_value, CheckoutError) and exc_value.stderr:
                for line in exc_value.stderr.splitlines():
                    log.debug("stderr: %s", line)
        else:
            log.error("operation failed: %s", exc_value, exc_info=exc_value)
        self.error = exc_value
        return True

    def exitcode(self) -> int:
        """Zero on success, 1 on failure."""
        return 1 if self.failed else 0
