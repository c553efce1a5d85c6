"""
Logging setup for the assessment engine.

``configure_logging(config)`` is called once by the CLI before any work.
Library modules only ever do ``logger = logging.getLogger(__name__)``.

Log lines go to stderr so that ``score --json`` output on stdout stays
machine-readable. With ``json_format = true`` each line is one object::

    {"ts": "2026-02-24T15:00:00Z", "level": "INFO", "logger": "...", "msg": "...",
     "assessment_id": "..."}

Keys passed through ``extra=`` (or added by ``run_logger``) are emitted as
top-level fields.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from assessment_engine.config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

_STANDARD_RECORD_KEYS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record: ``ts``, ``level``, ``logger``, ``msg`` + extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(
                LOG_DATE_FORMAT
            ),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(
            (key, val)
            for key, val in record.__dict__.items()
            if key not in _STANDARD_RECORD_KEYS and not key.startswith("_")
        )
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def build_formatter(json_format: bool) -> logging.Formatter:
    if json_format:
        return JsonLineFormatter()
    return logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)


def configure_logging(config: "LoggingConfig") -> None:
    """Install stderr (and optional file) handlers on the root logger.

    Args:
        config: ``AppConfig.logging``. An empty ``log_file`` disables the
            file handler; otherwise its parent directories are created.
    """
    level = logging.getLevelName(config.level)
    formatter = build_formatter(config.json_format)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)


def run_logger(logger: logging.Logger, **context: Any) -> logging.LoggerAdapter:
    """Wrap ``logger`` so every record carries ``context`` as extra fields.

    Example::

        log = run_logger(logger, assessment_id=aid, run_slug=slug)
        log.info("Stage [%s] starting", "generate-actions")
    """
    return logging.LoggerAdapter(logger, context)
