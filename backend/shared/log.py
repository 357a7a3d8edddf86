"""
Logging helpers.

Modules log through ``logging.getLogger(__name__)``. Failures of best-effort
side effects (push, email enqueue, link previews, search upserts) are reported
through :func:`alarm`, which writes to a dedicated logger that operators can
route to an alerting channel.
"""

import logging

from .exceptions import ConvoError

alarm_logger = logging.getLogger("convo.alarm")


def configure_logging(debug: bool = False) -> None:
    """Configure root logging for the API process."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def alarm(err: BaseException) -> None:
    """Log an error that must not fail the current request."""
    if isinstance(err, ConvoError):
        alarm_logger.error(
            "%s [%s] %s",
            err.op_trail or err.code,
            err.code,
            err.message,
            extra={"details": err.details},
        )
    else:
        alarm_logger.error("%s: %s", type(err).__name__, err, exc_info=err)
