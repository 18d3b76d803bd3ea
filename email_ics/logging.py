import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
PACKAGE_LOGGER = "email_ics"
QUIET_LOGGERS = ("httpx", "uvicorn.access", "multipart")


def configure_logging(level: str | None = None) -> int:
    """Set up root logging once and apply ``level`` to the package logger.

    ``level`` falls back to ``$LOG_LEVEL`` and then INFO; unknown names mean
    INFO. The package logger is set directly so the level still applies when
    a host such as uvicorn configured the root logger first.
    """
    chosen = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    resolved = logging.getLevelName(chosen)
    if not isinstance(resolved, int):
        resolved = logging.INFO

    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger(PACKAGE_LOGGER).setLevel(resolved)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))
    return resolved
