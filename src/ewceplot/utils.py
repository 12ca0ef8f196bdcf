"""Utility functions for the EWCE plotting package."""

import logging
from pathlib import Path

_HANDLER_PREFIX = 'ewceplot.'


def _remove_package_handlers(root_logger: logging.Logger) -> None:
    # Only handlers installed here; anything else on the root logger is left alone
    for handler in root_logger.handlers[:]:
        if (handler.get_name() or '').startswith(_HANDLER_PREFIX):
            root_logger.removeHandler(handler)
            handler.close()


def setup_logging(log_dir=None, level=logging.INFO):
    """Configure console and optional file logging on the root logger.

    Calling this again replaces the handlers from the previous call, so
    messages are never written twice.

    Args:
        log_dir: Directory for ewceplot.log; console only when None
        level: Logging level

    Returns:
        The package logger
    """
    root_logger = logging.getLogger()
    _remove_package_handlers(root_logger)
    root_logger.setLevel(level)

    console_handler = logging.StreamHandler()
    console_handler.set_name(_HANDLER_PREFIX + 'console')
    console_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s'
    ))
    root_logger.addHandler(console_handler)

    if log_dir:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_dir / 'ewceplot.log', mode='w')
        file_handler.set_name(_HANDLER_PREFIX + 'file')
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
        root_logger.addHandler(file_handler)
        # Write immediately so the file exists even if nothing else is logged
        root_logger.info("Logging initialized")

    return logging.getLogger('ewceplot')


def ensure_dir(path: Path) -> Path:
    """Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path

    Returns:
        Path object for the directory
    """
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path
