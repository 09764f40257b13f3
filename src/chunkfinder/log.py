from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(level: str = "WARNING") -> logging.Logger:
    """Route ``chunkfinder.*`` loggers through rich; returns the package logger."""
    logger = logging.getLogger("chunkfinder")
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(console=Console(stderr=True), show_path=False, markup=False)
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        logger.addHandler(handler)
    return logger
