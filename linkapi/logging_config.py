import logging.config
import sys
from typing import Any, Dict

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-28s | %(message)s"
ERROR_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | %(module)s.%(funcName)s:%(lineno)d\n"
    "%(message)s"
)


def build_logging_config(log_level: str, sql_level: str = "WARNING") -> Dict[str, Any]:
    """dictConfig for the API process and the maintenance scripts.

    The linkapi tree writes to stdout, and WARNING and above is repeated on
    stderr with call-site details. SQL statement logging stays at sql_level
    regardless of the app level.
    """
    level = log_level.upper()
    app_handlers = ["stdout", "stderr_details"]

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {"format": CONSOLE_FORMAT},
            "details": {"format": ERROR_FORMAT},
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "console",
                "stream": sys.stdout,
            },
            "stderr_details": {
                "class": "logging.StreamHandler",
                "formatter": "details",
                "stream": sys.stderr,
                "level": "WARNING",
            },
        },
        "root": {"handlers": ["stdout"], "level": level},
        "loggers": {
            "linkapi": {
                "handlers": app_handlers,
                "level": level,
                "propagate": False,
            },
            "uvicorn.error": {
                "handlers": app_handlers,
                "level": level,
                "propagate": False,
            },
            # LoggingMiddleware already writes one line per request
            "uvicorn.access": {"handlers": ["stdout"], "level": "WARNING"},
            "sqlalchemy.engine": {
                "handlers": ["stdout"],
                "level": sql_level.upper(),
                "propagate": False,
            },
        },
    }


def setup_logging(log_level: str = "INFO", sql_level: str = "WARNING") -> None:
    logging.config.dictConfig(build_logging_config(log_level, sql_level))
