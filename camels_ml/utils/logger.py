"""Project logging.

Every module calls ``setup_logger("<stage or module>")`` once at import and
gets an adapter that stamps the name into each record as ``func_ctx``. All
adapters share one ``camels_ml`` logger, which writes emoji-prefixed lines
to the console and plain lines to a rotating UTF-8 file. The logger does not
propagate, so handlers installed by sklearn or optuna never see its records.

Environment variables:
- CAMELS_ML_LOG_LEVEL: level used when none is passed (INFO).
- CAMELS_ML_LOG_FILE: file path (logs/camels_ml.log).
- NO_COLOR / NO_EMOJI: plain console output.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
import os
from pathlib import Path
import sys
from typing import Any

PROJECT_LOGGER = "camels_ml"
DEFAULT_LOG_FILE = Path("logs") / "camels_ml.log"
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5

_EMOJIS = {
    logging.DEBUG: "🐞  ",
    logging.INFO: "ℹ️  ",
    logging.WARNING: "⚠️  ",
    logging.ERROR: "❌  ",
    logging.CRITICAL: "🚨  ",
}
_COLORS = {
    logging.DEBUG: "\x1b[38;5;244m",
    logging.INFO: "\x1b[38;5;39m",
    logging.WARNING: "\x1b[38;5;214m",
    logging.ERROR: "\x1b[38;5;196m",
    logging.CRITICAL: "\x1b[48;5;196;38;5;231m",
}
_RESET = "\x1b[0m"


class EmojiFormatter(logging.Formatter):
    """``time | level | logger | func_ctx | message`` with an optional emoji and colour."""

    def __init__(self, *, use_color: bool = True, use_emoji: bool = True):
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(func_ctx)s | %(emoji)s%(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        self.use_color = use_color
        self.use_emoji = use_emoji

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "func_ctx"):
            record.func_ctx = "-"  # type: ignore[attr-defined]
        record.emoji = _EMOJIS.get(record.levelno, "") if self.use_emoji else ""  # type: ignore[attr-defined]

        text = super().format(record)
        color = _COLORS.get(record.levelno) if self.use_color else None
        return f"{color}{text}{_RESET}" if color else text


def _resolve_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    name = str(level or os.getenv("CAMELS_ML_LOG_LEVEL", "INFO")).upper()
    return getattr(logging, name, logging.INFO)


def _project_logger(level: int | str | None = None) -> logging.Logger:
    """Shared logger; the console handler is attached on first use only."""
    logger = logging.getLogger(PROJECT_LOGGER)
    if getattr(logger, "_camels_ml_configured", False):
        if level is not None:
            logger.setLevel(_resolve_level(level))
        return logger

    logger.setLevel(_resolve_level(level))
    logger.propagate = False
    console = logging.StreamHandler()
    console.setFormatter(
        EmojiFormatter(
            use_color=sys.stdout.isatty() and os.getenv("NO_COLOR") is None,
            use_emoji=os.getenv("NO_EMOJI") is None,
        )
    )
    logger.addHandler(console)
    logger._camels_ml_configured = True  # type: ignore[attr-defined]
    return logger


def _attach_file_handler(logger: logging.Logger, log_file: str | Path) -> None:
    path = Path(log_file).resolve()
    if any(
        isinstance(h, RotatingFileHandler) and h.baseFilename == str(path)
        for h in logger.handlers
    ):
        return
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            path, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8"
        )
    except OSError:
        # An unwritable log location must not stop a run
        logger.exception(f"Could not open log file {path}; logging to console only")
        return
    handler.setFormatter(EmojiFormatter(use_color=False, use_emoji=False))
    logger.addHandler(handler)


class _ContextAdapter(logging.LoggerAdapter):
    def process(self, msg: Any, kwargs: dict[str, Any]) -> tuple[Any, dict[str, Any]]:
        kwargs.setdefault("extra", {})["func_ctx"] = self.extra["func_ctx"]
        return msg, kwargs


def setup_logger(
    function_name: str,
    *,
    level: int | str | None = None,
    log_file: str | Path | None = None,
) -> logging.LoggerAdapter:
    """Return an adapter over the project logger tagged with ``function_name``.

    Args:
        function_name: Stage or module name written as ``func_ctx``.
        level: Optional level override for the shared logger.
        log_file: File to log to; defaults to ``CAMELS_ML_LOG_FILE`` or
            ``logs/camels_ml.log``.
    """
    logger = _project_logger(level)
    _attach_file_handler(
        logger, log_file or os.getenv("CAMELS_ML_LOG_FILE") or DEFAULT_LOG_FILE
    )
    return _ContextAdapter(logger, {"func_ctx": function_name})


def set_log_level(level: int | str) -> None:
    """Change the level of the shared project logger."""
    _project_logger(level)


__all__ = ["EmojiFormatter", "set_log_level", "setup_logger"]
