import logging
import os
from logging.handlers import RotatingFileHandler

from config import LOG_LEVEL

LOGGER_NAME = 'wayfarer.api'


def setup_api_logger(log_path: str | None = None) -> logging.Logger:
    """Setup and return the application-wide logger.

    Creates a rotating file handler at `log_path` (defaults to ./logs/api.log).
    Service modules log through child loggers (see `get_logger`), so records
    from the whole application end up in the same file.
    """
    if log_path is None:
        base = os.path.abspath(os.path.dirname(__file__))
        logs_dir = os.path.join(base, '..', 'logs')
        os.makedirs(logs_dir, exist_ok=True)
        log_path = os.path.join(logs_dir, 'api.log')
    else:
        os.makedirs(os.path.dirname(os.path.abspath(log_path)), exist_ok=True)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(LOG_LEVEL)

    # avoid adding multiple handlers if called multiple times
    if not logger.handlers:
        handler = RotatingFileHandler(log_path, maxBytes=5 * 1024 * 1024, backupCount=5, encoding='utf-8')
        formatter = logging.Formatter('%(asctime)s [%(levelname)s] %(name)s: %(message)s')
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def get_logger(area: str) -> logging.Logger:
    return logging.getLogger(LOGGER_NAME).getChild(area)
