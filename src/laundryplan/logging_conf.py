import logging
import sys
from typing import TextIO

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO", *, stream: TextIO | None = None) -> None:
    """Send laundryplan logs to stderr so command output on stdout stays parseable JSON.

    An unknown level name falls back to INFO and is reported as a warning.
    """
    numeric_level = getattr(logging, str(level).upper(), None)
    invalid = not isinstance(numeric_level, int)
    if invalid:
        numeric_level = logging.INFO

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    # Repeated calls (tests, run() per CLI invocation) must not stack handlers
    for old in list(root_logger.handlers):
        root_logger.removeHandler(old)
    root_logger.addHandler(handler)

    logging.getLogger("openpyxl").setLevel(logging.WARNING)

    if invalid:
        logger.warning("Invalid log level %r, defaulting to INFO", level)
