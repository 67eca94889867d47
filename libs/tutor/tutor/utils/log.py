import logging
from os import getenv
from typing import Any, Literal, Optional

from rich.logging import RichHandler

LOGGER_NAME = "tutor"

# Debug level 2 also prints the full message payloads sent to the model
_debug_level: Literal[1, 2] = 1


def build_logger(logger_name: str) -> logging.Logger:
    rich_handler = RichHandler(
        show_time=False,
        rich_tracebacks=False,
        show_path=False,
        tracebacks_show_locals=False,
    )
    rich_handler.setFormatter(
        logging.Formatter(
            fmt="%(message)s",
            datefmt="[%X]",
        )
    )

    _logger = logging.getLogger(logger_name)
    _logger.addHandler(rich_handler)
    _logger.setLevel(logging.INFO)
    _logger.propagate = False
    return _logger


logger: logging.Logger = build_logger(LOGGER_NAME)


def set_log_level_to_debug(level: Literal[1, 2] = 1) -> None:
    global _debug_level
    _debug_level = level
    _logger = logging.getLogger(LOGGER_NAME)
    _logger.setLevel(logging.DEBUG)


def set_log_level_to_info() -> None:
    _logger = logging.getLogger(LOGGER_NAME)
    _logger.setLevel(logging.INFO)


def center_header(message: str, symbol: str = "*") -> str:
    try:
        import shutil

        terminal_width = shutil.get_terminal_size().columns
    except Exception:
        terminal_width = 80

    header = f" {message} "
    return header.center(terminal_width - 20, symbol)


def log_debug(msg: Any, center: bool = False, symbol: str = "*", log_level: Literal[1, 2] = 1, *args, **kwargs):
    if log_level <= _debug_level:
        if center:
            msg = center_header(str(msg), symbol)
        logger.debug(msg, *args, **kwargs)


def log_info(msg: Any, *args, **kwargs):
    logger.info(msg, *args, **kwargs)


def log_warning(msg: Any, *args, **kwargs):
    logger.warning(msg, *args, **kwargs)


def log_error(msg: Any, *args, **kwargs):
    logger.error(msg, *args, **kwargs)


def log_exception(msg: Any, *args, **kwargs):
    logger.exception(msg, *args, **kwargs)


def use_debug_mode(debug_mode: Optional[bool] = None) -> bool:
    """Return True when debug logging was requested on the object or through TUTOR_DEBUG."""
    return bool(debug_mode) or getenv("TUTOR_DEBUG", "false").lower() == "true"
