"""Logging setup for the command line entry point."""

import logging
from pathlib import Path
from typing import Optional

from . import settings

_configured = False


def setup_logging(verbose: bool = False, log_file: Optional[str] = None) -> logging.Logger:
    """Attach console (and optional file) handlers to the package logger.

    Args:
        verbose: Log at DEBUG instead of INFO.
        log_file: Optional log file path. Falls back to HTML2DESIGN_LOG_FILE.

    Returns:
        The configured ``html2design`` logger.
    """
    global _configured
    logger = logging.getLogger("html2design")
    level = logging.DEBUG if verbose else logging.INFO
    logger.setLevel(level)
    if _configured:
        return logger

    logger.propagate = False

    sh = logging.StreamHandler()
    sh.setLevel(level)
    sh.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(message)s"))
    logger.addHandler(sh)

    path = log_file or settings.LOG_FILE
    if path:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(path, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(
            "%(asctime)s [%(name)s] [%(levelname)s] %(message)s"
        ))
        logger.addHandler(fh)

    _configured = True
    return logger
