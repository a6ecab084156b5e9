from __future__ import annotations

import logging
import sys

_OWN_PREFIXES = ("app.", "worker.")


class _ThirdPartyNoiseFilter(logging.Filter):
    """
    Keep our own loggers at the configured level, but let third-party
    libraries (httpx, celery, uvicorn access logs) through only at WARNING+.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name.startswith(_OWN_PREFIXES):
            return True
        if record.name == "py.warnings":
            return record.levelno >= logging.ERROR
        return record.levelno >= logging.WARNING


def setup_logging(level: str | int = logging.INFO) -> None:
    """
    Configure a single stderr handler on the root logger.

    Safe to call more than once (API lifespan and Celery worker start both do).
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(fmt)
    handler.addFilter(_ThirdPartyNoiseFilter())
    root.addHandler(handler)

    logging.captureWarnings(True)
