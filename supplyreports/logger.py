import logging
import sys
from logging.handlers import RotatingFileHandler
from . import settings


def setup_logger(name: str = None, log_level: int | str = None) -> logging.Logger:
    """
    Sets up a logger with both console (StreamHandler) and file (RotatingFileHandler) output.
    The level defaults to settings.LOG_LEVEL.
    """
    logger = logging.getLogger(name)
    logger.setLevel(log_level or settings.LOG_LEVEL)

    # Prevent adding handlers multiple times if logger is already set up
    if logger.hasHandlers():
        return logger

    console_format = logging.Formatter("%(levelname)s: %(message)s")
    file_format = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(console_format)
    logger.addHandler(console_handler)

    log_dir = settings.BASE_DIR / "logs"
    log_dir.mkdir(exist_ok=True)

    file_handler = RotatingFileHandler(
        log_dir / "reports.log", maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"  # 5 MB
    )
    file_handler.setFormatter(file_format)
    logger.addHandler(file_handler)

    return logger
