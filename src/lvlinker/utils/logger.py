"""
Logger utility module for consistent logging across lvlinker
Console output for the operator plus a rotating debug log file per run
"""
import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from lvlinker.utils.paths import get_log_dir


DETAILED_FORMAT = '%(asctime)s.%(msecs)03d [%(levelname)8s] %(name)s:%(lineno)d - %(message)s'
CONSOLE_FORMAT = '[%(levelname)s] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Environment variables that matter when a link or a Wine call misbehaves
RELEVANT_ENV_PREFIXES = ('WINE', 'STEAM', 'XDG_', 'FLATPAK')
RELEVANT_ENV_NAMES = ('HOME', 'USER', 'PATH', 'LANG')
SENSITIVE_MARKERS = ('TOKEN', 'PASSWORD', 'SECRET', 'KEY')


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """Return a module logger

    Once setup_logging has configured the root logger, module loggers simply
    propagate to it. Before that (library use, tests) a logger gets its own
    stdout handler so messages are not lost.
    """
    logger = logging.getLogger(name)

    if logging.getLogger().handlers:
        logger.setLevel(level if level is not None else logging.NOTSET)
        logger.propagate = True
        return logger

    if logger.handlers:
        return logger

    effective = level if level is not None else logging.INFO
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(effective)
    handler.setFormatter(logging.Formatter(DETAILED_FORMAT, datefmt=DATE_FORMAT))
    logger.setLevel(effective)
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def get_log_file_path() -> Path:
    """Get a fresh, timestamped log file path in the lvlinker log directory"""
    log_dir = get_log_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return log_dir / f"lvlinker_{stamp}.log"


def _log_environment(logger: logging.Logger) -> None:
    logger.debug("Relevant environment:")
    for key in sorted(os.environ):
        if not (key in RELEVANT_ENV_NAMES or key.startswith(RELEVANT_ENV_PREFIXES)):
            continue
        if any(marker in key.upper() for marker in SENSITIVE_MARKERS):
            logger.debug(f"  {key}=<REDACTED>")
        else:
            logger.debug(f"  {key}={os.environ[key]}")


def setup_logging(verbose: bool = False, log_to_file: bool = True) -> Optional[Path]:
    """Setup console logging and, optionally, a detailed debug log file

    Args:
        verbose: Show DEBUG messages on the console
        log_to_file: Also write a rotating log file with DEBUG detail

    Returns:
        Path of the log file, or None when file logging is disabled or unavailable
    """
    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.setLevel(logging.DEBUG)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.DEBUG if verbose else logging.INFO)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    root.addHandler(console)

    # urllib3 is chatty at DEBUG level
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    log_path = None
    if log_to_file:
        try:
            log_path = get_log_file_path()
            file_handler = RotatingFileHandler(log_path, maxBytes=1024 * 1024, backupCount=5, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(DETAILED_FORMAT, datefmt=DATE_FORMAT))
            root.addHandler(file_handler)
        except OSError as e:
            root.warning(f"Could not open log file, logging to console only: {e}")
            log_path = None

    logger = logging.getLogger(__name__)
    logger.debug("lvlinker - Steam to Vortex game linker - Starting")
    if log_path:
        logger.debug(f"Log file: {log_path}")
    logger.debug(f"Working directory: {Path.cwd()}")
    logger.debug(f"Python: {sys.executable} ({sys.version.split()[0]})")
    _log_environment(logger)

    return log_path
