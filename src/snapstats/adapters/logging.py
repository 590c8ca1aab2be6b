"""Logging setup for the snapstats command line.

Log records are written to stderr as one line each. Structured fields passed
with ``extra=`` (for example ``hostname_port`` and ``endpoint``) are appended
to the message as ``key=value`` pairs.
"""

import logging
import sys
from typing import TextIO

# Standard LogRecord attributes that should not be treated as extra fields
_STANDARD_LOGRECORD_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

LOGGER_NAME = "snapstats"


class KeyValueFormatter(logging.Formatter):
    """Formatter that appends the extra fields of a record as key=value.

    Example:
        ```python
        handler = logging.StreamHandler()
        handler.setFormatter(KeyValueFormatter())
        logger.addHandler(handler)
        logger.info("fetched", extra={"hostname_port": "node1:7000"})
        # 2024-01-01 12:00:00,000 INFO snapstats: fetched hostname_port=node1:7000
        ```
    """

    def __init__(self, fmt: str = _FORMAT) -> None:
        super().__init__(fmt)

    def format(self, record: logging.LogRecord) -> str:
        """Format the record and append its extra fields in sorted order.

        Args:
            record: The log record to format.
        """
        line = super().format(record)
        extras = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_LOGRECORD_ATTRS
            and isinstance(value, (str, int, float, bool))
        }
        if not extras:
            return line
        fields = " ".join(f"{key}={value}" for key, value in sorted(extras.items()))
        # Keep a traceback, if any, after the fields of the first line.
        head, sep, tail = line.partition("\n")
        return f"{head} {fields}{sep}{tail}"


def level_for(verbose: int = 0, silent: bool = False) -> int:
    """Map the command line verbosity to a logging level.

    Args:
        verbose: Number of -v flags (1 is INFO, 2 or more is DEBUG).
        silent: Only report errors; wins over verbose.

    Returns:
        A logging level.
    """
    if silent:
        return logging.ERROR
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return logging.WARNING


def configure_logging(
    verbose: int = 0, silent: bool = False, stream: TextIO | None = None
) -> logging.Logger:
    """Install a single stderr handler on the snapstats logger.

    Calling it again replaces the handler instead of adding another.

    Args:
        verbose: Number of -v flags.
        silent: Only report errors.
        stream: Stream to write to. Defaults to stderr.

    Returns:
        The configured snapstats logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, "_snapstats_handler", False):
            logger.removeHandler(handler)
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(KeyValueFormatter())
    handler._snapstats_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(level_for(verbose, silent))
    logger.propagate = False
    return logger
