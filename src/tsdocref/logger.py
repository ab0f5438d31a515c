import logging
import sys

import structlog

LOGGER_NAME = "tsdocref"

structlog.configure(
    wrapper_class=structlog.make_filtering_bound_logger(logging.NOTSET),
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
    processors=[
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False),
        structlog.dev.ConsoleRenderer(),
    ],
)

# Level filtering happens on this stdlib logger; output goes through root handlers.
_std_logger = logging.getLogger(LOGGER_NAME)
_std_logger.setLevel(logging.NOTSET)
_std_logger.propagate = True

logger: structlog.BoundLogger = structlog.get_logger(LOGGER_NAME)


def setup_logging(debug: bool = False) -> None:
    """Emit tsdocref events to stderr at INFO, or DEBUG when *debug* is set.

    Only the ``tsdocref`` logger level is touched. A stderr handler is added
    to the root logger when the host application has not configured one.
    """
    _std_logger.setLevel(logging.DEBUG if debug else logging.INFO)

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(handler)
