"""Logging for cleanup runs: a plain file log plus a coloured console."""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

_LOGGER_NAME = "archivist"


def printable(text: str) -> str:
    """Replace undecodable filename bytes with "?" so the text can go to a terminal or log."""
    return text.encode("utf-8", "replace").decode("utf-8")


class _PrintableFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        safe = printable(message)
        if safe != message:
            record.msg, record.args = safe, ()
        return True


def setup_logging(
    log_file: Path | None = None,
    verbose: bool = False,
    console: Console | None = None,
) -> logging.Logger:
    logger = logging.getLogger(_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    level = logging.DEBUG if verbose else logging.INFO
    console_handler = RichHandler(console=console, show_path=False, markup=False)
    console_handler.setLevel(level)
    console_handler.addFilter(_PrintableFilter())
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
        file_handler.setLevel(logging.DEBUG)
        file_handler.addFilter(_PrintableFilter())
        logger.addHandler(file_handler)

    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    return logger
