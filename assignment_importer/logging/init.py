from __future__ import annotations

import logging
import sys

"""Labeled stdout logging for the importer.

Output contract: each line is "<LABEL> <message>" where LABEL is one of
INFO | WARN | ERROR | SUMMARY (DEBUG only with --debug). Modules log through
logging.getLogger(__name__); everything lives under the "assignment_importer"
namespace and ends up in the one handler installed by setup_logging().

With debug enabled, lines coming from a submodule also carry its short name:
    DEBUG [services.reconciler] row=3 project=... created
"""

__all__ = [
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
    "LabeledFormatter",
    "setup_logging",
    "get_logger",
    "log_summary",
    "reset_logging",
]

LOGGER_NAME = "assignment_importer"

SUMMARY_LEVEL = 25  # INFO < SUMMARY < WARNING

_logger: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    LEVEL_LABELS = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
        SUMMARY_LEVEL: "SUMMARY",
    }

    def __init__(self, show_origin: bool = False) -> None:
        super().__init__()
        self.show_origin = show_origin

    def _origin(self, record: logging.LogRecord) -> str:
        prefix = LOGGER_NAME + "."
        if not self.show_origin or not record.name.startswith(prefix):
            return ""
        return f"[{record.name[len(prefix):]}] "

    def format(self, record: logging.LogRecord) -> str:
        label = self.LEVEL_LABELS.get(record.levelno, record.levelname)
        return f"{label} {self._origin(record)}{record.getMessage()}"


def _configure(logger: logging.Logger, debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(level)
    for h in logger.handlers:
        h.setLevel(level)
        h.setFormatter(LabeledFormatter(show_origin=debug))


def setup_logging(debug: bool = False) -> logging.Logger:
    """Install the labeled stdout handler on the "assignment_importer" logger.

    Calling it again does not add handlers; it only switches to debug output
    when debug=True is requested later (e.g. after argument parsing).
    """
    global _logger

    if _logger is not None:
        if debug:
            _configure(_logger, debug=True)
        return _logger

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logger.addHandler(logging.StreamHandler(sys.stdout))
    _configure(logger, debug)
    # root logger に流すと二重出力になる
    logger.propagate = False

    _logger = logger
    return logger


def get_logger() -> logging.Logger:
    return _logger if _logger is not None else setup_logging()


def log_summary(message: str) -> None:
    """Emit one SUMMARY line."""
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Forget the configured logger (tests)."""
    global _logger
    _logger = None
