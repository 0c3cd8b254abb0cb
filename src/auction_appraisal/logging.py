import logging
import os
from typing import Optional


ROOT_LOGGER_NAME = "auction_appraisal"

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


def _coerce_level(value: Optional[str]) -> int:
    if isinstance(value, str):
        return _LEVELS.get(value.upper().strip(), logging.INFO)
    if isinstance(value, int):
        return value
    return logging.INFO


def _configure_root() -> logging.Logger:
    """Attach the package handlers once to the ``auction_appraisal`` logger.

    - Honors LOG_LEVEL (default INFO) and LOG_FILE (optional path).
    - Does not propagate, so uvicorn's or pytest's root handlers don't
      print every record twice.
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if getattr(root, "_appraisal_configured", False):
        return root

    level = _coerce_level(os.environ.get("LOG_LEVEL", "INFO"))
    root.setLevel(level)

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    sh = logging.StreamHandler()
    sh.setFormatter(formatter)
    root.addHandler(sh)

    log_file = os.environ.get("LOG_FILE")
    if log_file:
        try:
            fh = logging.FileHandler(log_file, encoding="utf-8")
        except OSError:
            root.warning("LOG_FILE could not be opened; continuing without file logging")
        else:
            fh.setFormatter(formatter)
            root.addHandler(fh)

    root.propagate = False
    setattr(root, "_appraisal_configured", True)
    return root


def get_logger(name: str) -> logging.Logger:
    """Return ``auction_appraisal.<name>``; records flow up to the package logger.

    Child loggers carry no handlers or level of their own, so changing the
    package logger's level (e.g. from the CLI) applies everywhere.
    """
    _configure_root()
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
