"""Logging setup for the validation package.

Every module logs through ``logging.getLogger("ctasval")``. Nothing is
emitted until :func:`setup_logging` attaches handlers, so importing the
package stays silent.
"""

from __future__ import annotations

from pathlib import Path
import logging

LOGGER_NAME = "ctasval"


def setup_logging(log_file: str | Path, level: int = logging.INFO, to_stdout: bool = False) -> logging.Logger:
    """Configure and return the shared "ctasval" logger.

    Parameters
    ----------
    log_file:
        Destination log file path.
    level:
        Logging level (default INFO).
    to_stdout:
        If True, also echo logs to stderr/console.
    """

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    log_path = str(Path(log_file).resolve())
    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(module)s:%(funcName)s:%(lineno)d - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    def _has_file_handler() -> bool:
        for h in logger.handlers:
            if isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", None) == log_path:
                return True
        return False

    if not _has_file_handler():
        fh = logging.FileHandler(log_path)
        fh.setLevel(level)
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    # FileHandler subclasses StreamHandler
    has_console = any(
        isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        for h in logger.handlers
    )
    if to_stdout and not has_console:
        sh = logging.StreamHandler()
        sh.setLevel(level)
        sh.setFormatter(fmt)
        logger.addHandler(sh)

    logger.propagate = False
    return logger
