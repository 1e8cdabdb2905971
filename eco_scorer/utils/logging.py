"""
Logging setup for the eco scorer CLI.

``configure_logging(config.logging)`` is called once per CLI command.  Library
modules only ever do ``logging.getLogger(__name__)``.

With ``json_format = true`` each record is one JSON line.  Prediction logs
pass ``extra={"user_id": ..., "model_version": ..., "score": ...}``; those keys
appear as top-level fields::

    {"ts": "2025-03-12T09:00:00Z", "level": "INFO", "logger": "eco_scorer.service",
     "msg": "Predicted 72.50 (Good) ...", "user_id": 1, "model_version": "v1.0", "score": 72.5}
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from eco_scorer.config import LoggingConfig

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
TS_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

_BASE_RECORD_KEYS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record: ``ts``, ``level``, ``logger``, ``msg`` + extras."""

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        line: dict = {
            "ts": ts.strftime(TS_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        line.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _BASE_RECORD_KEYS and not key.startswith("_")
        )
        if record.exc_info:
            line["exc"] = self.formatException(record.exc_info)
        return json.dumps(line, default=str)


def build_formatter(config: "LoggingConfig") -> logging.Formatter:
    if config.json_format:
        return JsonLineFormatter()
    return logging.Formatter(TEXT_FORMAT, datefmt=TS_FORMAT)


def configure_logging(config: "LoggingConfig") -> None:
    """Route root logging to stdout, plus ``config.log_file`` when set.

    Replaces any handlers installed by an earlier call.
    """
    level = logging.getLevelName(config.level.upper())
    formatter = build_formatter(config)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    logging.getLogger("lightgbm").setLevel(logging.WARNING)
