"""
Logging for the crawler.

All modules log through the ``lemma-crawler`` logger.  Messages start
with a ``[TAG]`` naming the event (``[PAGE]``, ``[DUP]``, ``[STOP]`` …);
console output colours the level via ``colorlog`` and the tag via a
plain ANSI escape.  Under GitHub Actions warnings and errors are
emitted as ``::warning::`` / ``::error::`` annotations instead.

Worker threads are named ``crawl-<run>_<n>`` so the thread column
tells concurrent runs apart.
"""

import logging
import os
from pathlib import Path

import colorlog

log = logging.getLogger("lemma-crawler")

_CONSOLE_FMT = "%(asctime)s [%(levelname)s] %(threadName)s %(message)s"
_CONSOLE_DATEFMT = "%H:%M:%S"
_FILE_LOG_FMT = "%(asctime)s [%(levelname)s] %(threadName)s %(message)s"
_FILE_LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

_LEVEL_COLOURS = {
    "DEBUG":    "cyan",
    "INFO":     "green",
    "WARNING":  "yellow",
    "ERROR":    "red",
    "CRITICAL": "bold_red",
}

_CI: bool = os.environ.get("GITHUB_ACTIONS") == "true"

_ANSI_RESET = "\033[0m"
_CATEGORY_STYLES: dict[str, str] = {
    "[PAGE]":  "\033[1;32m",
    "[SAVE]":  "\033[32m",
    "[QUEUE]": "\033[37m",
    "[DUP]":   "\033[90m",
    "[SKIP]":  "\033[90m",
    "[TIME]":  "\033[33m",
    "[STOP]":  "\033[1;36m",
    "[ERR]":   "\033[1;31m",
}


def _apply_category_styles(msg: str) -> str:
    """Wrap every known ``[TAG]`` in *msg* in its ANSI colour."""
    for tag, style in _CATEGORY_STYLES.items():
        if tag in msg:
            msg = msg.replace(tag, f"{style}{tag}{_ANSI_RESET}")
    return msg


class _ColorlogCategoryFormatter(colorlog.ColoredFormatter):
    """``colorlog`` level colours plus ``[TAG]`` highlighting."""

    def format(self, record: logging.LogRecord) -> str:
        return _apply_category_styles(super().format(record))


class _CIFormatter(logging.Formatter):
    """Prefixes warnings and errors with the GitHub Actions workflow
    command that turns them into annotations."""

    _CI_COMMANDS: dict[int, str] = {
        logging.WARNING:  "::warning::",
        logging.ERROR:    "::error::",
        logging.CRITICAL: "::error::",
    }

    def format(self, record: logging.LogRecord) -> str:
        prefix = self._CI_COMMANDS.get(record.levelno, "")
        return prefix + _apply_category_styles(super().format(record))


def _console_handler() -> logging.Handler:
    if _CI:
        handler = logging.StreamHandler()
        handler.setFormatter(_CIFormatter(_CONSOLE_FMT, datefmt=_CONSOLE_DATEFMT))
        return handler
    handler = colorlog.StreamHandler()
    handler.setFormatter(_ColorlogCategoryFormatter(
        "%(log_color)s%(asctime)s [%(levelname)s]%(reset)s "
        "%(threadName)s %(message)s",
        datefmt=_CONSOLE_DATEFMT,
        log_colors=_LEVEL_COLOURS,
    ))
    return handler


def _file_handler(log_path: Path) -> logging.Handler:
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(str(log_path), encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(_FILE_LOG_FMT, datefmt=_FILE_LOG_DATEFMT))
    return handler


def setup_logging(debug: bool = False, log_file: str | None = None) -> None:
    """(Re)configure the ``lemma-crawler`` logger.

    Parameters
    ----------
    debug : bool
        Show DEBUG records (dedup hits, skipped links, queue counts)
        on the console; the default is INFO.
    log_file : str | None
        Also append every record, DEBUG included, to this file.
    """
    log.setLevel(logging.DEBUG if debug or log_file else logging.INFO)
    log.handlers.clear()

    console = _console_handler()
    console.setLevel(logging.DEBUG if debug else logging.INFO)
    log.addHandler(console)

    if log_file:
        log_path = Path(log_file)
        log.addHandler(_file_handler(log_path))
        log.info("Logging to file: %s", log_path.resolve())
