"""Logging utilities."""

import logging
import sys
from pathlib import Path
from typing import Optional

from loguru import logger as loguru_logger

from pagestamp.core.config import TemplateConfig


class InterceptHandler(logging.Handler):
    """Forward standard logging records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = loguru_logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk out of the logging module so loguru reports the real caller
        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        loguru_logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logger(
    name: str = "pagestamp",
    level: str = "INFO",
    log_file: Optional[str] = None,
    use_loguru: bool = True
) -> logging.Logger:
    """
    Set up logger with configuration.

    Args:
        name: Logger name; records of this logging hierarchy are routed to loguru
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file path
        use_loguru: Use loguru sinks instead of standard handlers

    Returns:
        Configured logger
    """
    level = level.upper()
    if use_loguru:
        loguru_logger.remove()

        loguru_logger.add(
            sys.stderr,
            level=level,
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
        )

        if log_file:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            loguru_logger.add(
                log_file,
                level=level,
                rotation="10 MB",
                retention="1 week"
            )

        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.setLevel(getattr(logging, level))
        std_logger.propagate = False

        return LoguruWrapper(loguru_logger)

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level))
    logger.handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level))
    formatter = logging.Formatter(
        '%(asctime)s | %(levelname)-8s | %(name)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def configure_logging(
    config: TemplateConfig,
    log_file: Optional[str] = None,
    use_loguru: bool = True
) -> logging.Logger:
    """Set up the pagestamp logger at the level named by ``config.log_level``."""
    return setup_logger("pagestamp", config.log_level, log_file, use_loguru)


def get_logger(name: str = "pagestamp", use_loguru: bool = True) -> logging.Logger:
    """Get existing logger or create new one."""
    if use_loguru:
        return LoguruWrapper(loguru_logger)
    return logging.getLogger(name)


class LoguruWrapper:
    """Wrapper for loguru to standard logging interface."""

    def __init__(self, logger):
        self._logger = logger

    def debug(self, msg, *args, **kwargs):
        self._logger.debug(msg, *args, **kwargs)

    def info(self, msg, *args, **kwargs):
        self._logger.info(msg, *args, **kwargs)

    def warning(self, msg, *args, **kwargs):
        self._logger.warning(msg, *args, **kwargs)

    def error(self, msg, *args, **kwargs):
        self._logger.error(msg, *args, **kwargs)

    def critical(self, msg, *args, **kwargs):
        self._logger.critical(msg, *args, **kwargs)

    def exception(self, msg, *args, **kwargs):
        self._logger.exception(msg, *args, **kwargs)
