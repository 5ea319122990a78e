"""Logging configuration.

Configures the root logger once for the whole service. Modules obtain their
own loggers with ``logging.getLogger(__name__)``.
"""

import logging
import logging.config

from config import LOG_LEVEL

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = LOG_LEVEL) -> None:
    """Configure console logging for the application.

    Args:
        level: Root log level name, e.g. "INFO" or "DEBUG".
    """
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {"format": LOG_FORMAT},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "root": {"level": level, "handlers": ["console"]},
            "loggers": {
                # uvicorn installs its own handlers
                "uvicorn.access": {"level": "WARNING"},
            },
        }
    )
