import logging
import logging.config
import os

LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

os.makedirs(LOG_DIR, exist_ok=True)


def _file_handler(filename: str, level: str) -> dict:
    return {
        "level": level,
        "class": "logging.handlers.RotatingFileHandler",
        "filename": os.path.join(LOG_DIR, filename),
        "maxBytes": 10 * 1024 * 1024,
        "backupCount": 5,
        "formatter": "verbose",
    }


LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        },
        "verbose": {
            "format": "%(asctime)s %(levelname)-8s %(name)s: %(message)s "
            "[%(filename)s:%(lineno)s]",
        },
    },
    "handlers": {
        "console": {
            "level": LOG_LEVEL,
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
        "ledger_file": _file_handler("ledger.log", "DEBUG"),
        "error_file": _file_handler("error.log", "ERROR"),
    },
    "loggers": {
        "src.fleet_ledger": {
            "level": "DEBUG",
            "handlers": ["console", "ledger_file", "error_file"],
            "propagate": False,
        },
        # Conflicting adjustments and unknown references are logged here
        "src.fleet_ledger.daily_ledger": {
            "level": "INFO",
            "handlers": ["console", "ledger_file", "error_file"],
            "propagate": False,
        },
        "uvicorn": {
            "level": "INFO",
            "handlers": ["console"],
            "propagate": False,
        },
        "sqlalchemy.engine": {
            "level": "WARNING",
            "handlers": ["ledger_file"],
            "propagate": False,
        },
    },
    "root": {"level": LOG_LEVEL, "handlers": ["console"]},
}


def setup_logging():
    logging.config.dictConfig(LOGGING_CONFIG)
