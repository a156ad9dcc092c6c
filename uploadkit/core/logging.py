from logging.config import dictConfig
from typing import Any

APP_LOGGERS = ("uploadkit", "uploadkit.api", "uploadkit.upload_logic", "uploadkit.services")


def _formatters() -> dict[str, dict[str, str]]:
    return {
        "default": {
            "()": "uvicorn.logging.DefaultFormatter",
            "fmt": "%(levelprefix)s %(asctime)s [%(name)s] %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
        "access": {
            "()": "uvicorn.logging.AccessFormatter",
            "fmt": '%(levelprefix)s %(asctime)s [%(name)s] "%(request_line)s" %(status_code)s',
        },
    }


def _stream_handler(formatter: str, stream: str, level: str) -> dict[str, str]:
    return {
        "class": "logging.StreamHandler",
        "formatter": formatter,
        "stream": f"ext://sys.{stream}",
        "level": level,
    }


def build_logging_config(level: str = "DEBUG") -> dict[str, Any]:
    """Uvicorn-compatible dictConfig mapping.

    ``level`` applies to the uploadkit handler and loggers; uvicorn stays at INFO.
    """
    loggers: dict[str, dict[str, Any]] = {
        "root": {"handlers": ["default"], "level": "INFO", "propagate": False},
        "uvicorn.error": {"handlers": ["default"], "level": "INFO", "propagate": False},
        "uvicorn.access": {"handlers": ["access"], "level": "INFO", "propagate": False},
    }
    for name in APP_LOGGERS:
        loggers[name] = {"handlers": ["uploadkit"], "level": level, "propagate": False}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": _formatters(),
        "handlers": {
            "default": _stream_handler("default", "stderr", "INFO"),
            "access": _stream_handler("access", "stdout", "INFO"),
            "uploadkit": _stream_handler("default", "stdout", level),
        },
        "loggers": loggers,
    }


def setup_logging(level: str = "DEBUG") -> None:
    """Configures application-wide logging using dictConfig."""
    dictConfig(build_logging_config(level))
