from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from pathlib import Path

LOGGER_NAME = "code_context"

_LOGGING_CONFIGURED = False


def setup_logging(filename: str | Path | None = None) -> structlog.BoundLogger:
    """Set up structured logging for the code_context package.

    Diagnostics never go to stdout: stdout only carries the generated document.

    Args:
        filename: Optional path to a log file. If None, logs are written to stderr.

    Returns:
        A structlog logger instance configured for the code_context package.
    """
    global _LOGGING_CONFIGURED  # noqa: PLW0603
    if not _LOGGING_CONFIGURED:
        logging.basicConfig(
            level=logging.INFO,
            handlers=[logging.StreamHandler(sys.stderr)],
            format="%(message)s",
        )
        structlog.configure(
            processors=[
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _LOGGING_CONFIGURED = True

    if filename:
        _redirect_to_file(filename)
    return structlog.get_logger(LOGGER_NAME)


def _redirect_to_file(filename: str | Path) -> None:
    """Send the package's records to `filename` instead of the root handlers.

    Args:
        filename: Path to the log file.
    """
    std_logger = logging.getLogger(LOGGER_NAME)
    for handler in list(std_logger.handlers):
        std_logger.removeHandler(handler)
        handler.close()
    std_logger.addHandler(logging.FileHandler(str(filename), encoding="utf-8"))
    std_logger.propagate = False


logger = setup_logging()
