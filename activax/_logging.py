"""Console and file logging for scripts that drive activax models.

The library itself only attaches a `NullHandler`; call
`enable_logging_handlers` from an entrypoint to see its records.

:copyright: Copyright 2024 by MLL <mll@mll.bio>.
:license: Apache 2.0. See LICENSE for details.
"""

import logging
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.highlighter import ReprHighlighter
from rich.logging import RichHandler
from rich.text import Text

from activax.config import load_logging_config

SESSION_START_BANNER = "―" * 20 + " NEW SESSION STARTED " + "―" * 20


def _remove_handlers(logger: logging.Logger, *, predicate) -> None:
    """Remove and close all handlers on `logger` for which `predicate(handler)` is True."""
    for h in list(logger.handlers):
        if predicate(h):
            logger.removeHandler(h)
            h.close()


def _make_rotating_handler(
    path: Path,
    level: int,
    fmt: logging.Formatter,
    max_bytes: int,
    backup_count: int,
) -> RotatingFileHandler:
    """Create a RotatingFileHandler writing to `path` at `level` with `fmt`."""
    fh = RotatingFileHandler(
        filename=str(path),
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    fh.setLevel(level)
    fh.setFormatter(fmt)
    return fh


def _console_handler_pred(h: logging.Handler) -> bool:
    return isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)


class BacktickPathHighlighter(ReprHighlighter):
    """Highlight filesystem paths wrapped in backticks, e.g. "Loading `~/cfg.yml`"."""

    _DELIM = re.compile(r"`(?P<body>[^`]+)`")
    _PATH = re.compile(r"^(?:~|/|[A-Za-z]:\\)[\w.\- /\\]+$")

    def highlight(self, text: Text) -> None:
        super().highlight(text)

        s = text.plain
        for m in self._DELIM.finditer(s):
            body = m.group("body").strip()
            if self._PATH.match(body):
                text.stylize("repr.path", m.start("body"), m.end("body"))


class _DropFileOnlyOnConsole(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return not getattr(record, "file_only", False)


def enable_logging_handlers(
    file_level: int | None = None,
    console_level: int | None = None,
    logs_dir: str | Path | None = None,
) -> Path:
    """Attach a Rich console handler and a rotating file handler to the root logger.

    Unspecified levels and the log directory come from `logging.yml`.

    Returns:
        Path of the log file.
    """
    cfg = load_logging_config()
    file_lvl: int = file_level or cfg.file_level
    console_lvl: int = console_level or cfg.console_level
    console_fmt = logging.Formatter(cfg.console_format_str)
    file_fmt = logging.Formatter(cfg.file_format_str)

    logs_path = Path(logs_dir if logs_dir is not None else cfg.logs_dir).expanduser().resolve()
    logs_path.mkdir(parents=True, exist_ok=True)
    root_log = logs_path / "root.log"

    root = logging.getLogger()
    root.setLevel(min(file_lvl, console_lvl))

    _remove_handlers(root, predicate=lambda h: isinstance(h, RotatingFileHandler))
    root.addHandler(
        _make_rotating_handler(root_log, file_lvl, file_fmt, cfg.max_bytes, cfg.backup_count)
    )

    _remove_handlers(root, predicate=_console_handler_pred)
    console_h = RichHandler(level=console_lvl, highlighter=BacktickPathHighlighter())
    console_h.setFormatter(console_fmt)
    console_h.addFilter(_DropFileOnlyOnConsole())
    root.addHandler(console_h)

    root.info(SESSION_START_BANNER, extra={"file_only": True})
    root.info("Logging enabled → `%s`", root_log)

    logging.captureWarnings(True)

    return root_log
