"""Shared logging setup for MC-Suite command line tools."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

__all__ = ["configure_logging"]

_MANAGED_HANDLER_FLAG = "_mcsuite_managed_handler"


def _default_log_directory() -> Path:
    """Return the directory log files are written to when none is given."""

    env_override = os.environ.get("MCSUITE_LOG_DIR")
    if env_override:
        return Path(env_override).expanduser()

    module_path = Path(__file__).resolve()
    # Project root is the first parent holding pyproject.toml or .git
    for candidate in module_path.parents:
        if (candidate / "pyproject.toml").exists() or (candidate / ".git").exists():
            return candidate / "logs"

    return Path.cwd() / "logs"


def _remove_managed_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        if getattr(handler, _MANAGED_HANDLER_FLAG, False):
            logger.removeHandler(handler)
            handler.close()
# Pillow logs every PNG chunk it parses at DEBUG; one texture pack has thousands
_NOISY_LOGGERS = ("PIL",)

_FORMAT = "%(asctime)s [%(levelname)s] %(threadName)s %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _install(root: logging.Logger, handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATE_FORMAT))
    setattr(handler, _MANAGED_HANDLER_FLAG, True)
    root.addHandler(handler)


def configure_logging(
    log_name: str,
    *,
    level: int = logging.INFO,
    log_dir: Optional[Path] = None,
    include_console: bool = True,
) -> Path:
    """Send root logging to ``<log_dir>/<log_name>.log`` (and the console).

    Calling this again swaps out the handlers installed by the previous call,
    so a process only ever writes to the most recently configured file. The
    console only shows warnings and errors so it does not fight the progress
    bar; the file gets everything at *level*, tagged with the worker thread.
    """

    directory = Path(log_dir).expanduser() if log_dir else _default_log_directory()
    directory.mkdir(parents=True, exist_ok=True)
    log_path = directory / f"{log_name}.log"

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    _remove_managed_handlers(root_logger)

    _install(root_logger, logging.FileHandler(log_path, encoding="utf-8"), level)
    if include_console:
        _install(root_logger, logging.StreamHandler(), max(level, logging.WARNING))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))

    logging.captureWarnings(True)
    return log_path
