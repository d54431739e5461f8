"""Logging setup shared by the API, the scheduler and the analytics modules."""
import logging
import sys
from typing import Any

from config import settings

# Paginated GraphQL scans issue hundreds of requests; keep per-request lines out of INFO.
_NOISY_LOGGERS = ("httpx", "httpcore", "apscheduler.executors.default")


def setup_logging(level: str | None = None) -> None:
    level = (level or settings.LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,
    )
    if level != "DEBUG":
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_extra(logger: logging.Logger, msg: str, **kwargs: Any) -> None:
    """One INFO line with key=value context appended."""
    if kwargs:
        logger.info("%s %s", msg, " ".join(f"{k}={v}" for k, v in kwargs.items()))
    else:
        logger.info("%s", msg)
