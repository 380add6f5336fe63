"""Logging configuration for ghostctl.

Logs go to stderr so stdout stays clean for `eval "$(ghostctl connect ...)"`.
"""

import logging
import logging.config
from typing import Any, Dict


def get_logging_config(level: str = "warning") -> Dict[str, Any]:
    """Get the dictConfig for the ghostctl logger tree."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stderr",
            },
        },
        "loggers": {
            "ghostctl": {
                "handlers": ["stderr"],
                "level": level.upper(),
                "propagate": False,
            },
        },
    }


def configure_logging(level: str = "warning") -> logging.Logger:
    """Apply the logging config and return the root ghostctl logger."""
    logging.config.dictConfig(get_logging_config(level))
    return logging.getLogger("ghostctl")
