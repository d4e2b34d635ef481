"""Logging helpers shared by the llmsgen components."""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "llmsgen"
_CONSOLE_FORMAT = "[llmsgen] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``llmsgen.<name>``, or the package logger when ``name`` is empty."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def resolve_level(*, verbose: bool = False, quiet: bool = False) -> int:
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
) -> logging.Logger:
    """Attach a console handler (and optionally a file sink) to the package logger.

    Calling this again replaces the previous handlers instead of stacking them.
    """
    level = resolve_level(verbose=verbose, quiet=quiet)
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        sink = logging.FileHandler(log_file, encoding="utf-8")
        # The file keeps debug detail even when the console is quiet.
        sink.setLevel(logging.DEBUG)
        sink.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(sink)
        logger.setLevel(logging.DEBUG)

    return logger


__all__ = ["configure_logging", "get_logger", "resolve_level"]
