"""Logger factory for the budget scenario engine."""

from __future__ import annotations

import logging
from typing import Optional, Union

_LOGGER_PREFIX = "budget_models"

_DEFAULT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the budget_models namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


def configure_logging(
    level: Union[int, str] = logging.INFO,
    fmt: Optional[str] = None,
) -> logging.Logger:
    """
    Attach a stream handler to the package root logger.

    Calling it again only updates the level and format, so the CLI and the
    Streamlit page can both call it on every run.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger(_LOGGER_PREFIX)
    root.setLevel(level)

    formatter = logging.Formatter(fmt or _DEFAULT_FORMAT)
    handler = next(
        (h for h in root.handlers if getattr(h, "_budget_models_handler", False)),
        None,
    )
    if handler is None:
        handler = logging.StreamHandler()
        handler._budget_models_handler = True
        root.addHandler(handler)
    handler.setFormatter(formatter)
    handler.setLevel(level)
    return root


def reset_logging() -> None:
    """Remove handlers installed by configure_logging."""
    root = logging.getLogger(_LOGGER_PREFIX)
    for handler in list(root.handlers):
        if getattr(handler, "_budget_models_handler", False):
            root.removeHandler(handler)
    root.setLevel(logging.NOTSET)
