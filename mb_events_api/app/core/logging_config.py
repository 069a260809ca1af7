"""
Logging for the service.

Application modules log under the ``mb_events_api`` namespace through
``logging.getLogger(__name__)``.  ``setup_logging`` gives that namespace
its own handlers, so a host process (uvicorn, pytest) keeps control of
the root logger.  Because ``log_request`` already writes one line per
request from the HTTP middleware, uvicorn's access log is muted.  httpx,
used for media uploads, would otherwise log every call at INFO.
"""

import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

APP_LOGGER = "mb_events_api"

request_logger = logging.getLogger(f"{APP_LOGGER}.requests")

_QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
}


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """Configure the ``mb_events_api`` logger tree.

    The level is applied on every call.  Handlers are attached only
    once per process, which matters when several applications are
    created, as the test suite does.  Unknown level names fall back to
    ``INFO``.
    """
    app_logger = logging.getLogger(APP_LOGGER)
    app_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    for name, quiet_level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)
    if app_logger.handlers:
        return

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers = [logging.StreamHandler()]
    if logfile:
        handlers.append(logging.FileHandler(Path(logfile).resolve(), encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
        app_logger.addHandler(handler)
    # Records stop here instead of being printed again by root handlers.
    app_logger.propagate = False


def log_request(method: str, path: str, status_code: int, duration_ms: float) -> None:
    """Log a handled request; 5xx responses are logged as errors."""
    level = logging.ERROR if status_code >= 500 else logging.INFO
    request_logger.log(level, "%s %s %s %.1fms", method, path, status_code, duration_ms)
