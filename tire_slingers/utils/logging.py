"""
Logging setup for the Tire Slingers recommendation engine.

``configure_logging(config)`` is called once by each CLI command before any
engine work. Everything else only does ``logging.getLogger(__name__)``.

Run context
-----------
Messages emitted inside a pipeline run can carry ``run_slug`` and ``org_id``
(see ``run_logger()``). The text format appends them in brackets; the JSON
format (``json_format = true`` under ``[logging]``) puts them at top level::

    {"ts": "2025-06-01T12:00:00Z", "level": "INFO", "logger": "...",
     "msg": "...", "run_slug": "...", "org_id": "yard-1"}
"""

from __future__ import annotations

import json
import logging
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, MutableMapping

if TYPE_CHECKING:
    from tire_slingers.config import LoggingConfig
    from tire_slingers.models.meta import RunMetadata

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
RUN_CONTEXT_FIELDS = ("run_slug", "org_id")

_BUILTIN_RECORD_FIELDS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime"}


class TextFormatter(logging.Formatter):
    """Plain text with UTC timestamps and an optional ``[run=.. org=..]`` suffix."""

    converter = time.gmtime

    def __init__(self) -> None:
        super().__init__(TEXT_FORMAT, datefmt=TIMESTAMP_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = " ".join(
            f"{name.split('_')[0]}={getattr(record, name)}"
            for name in RUN_CONTEXT_FIELDS
            if getattr(record, name, None)
        )
        return f"{line} [{context}]" if context else line


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record; ``extra=`` fields land at top level."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(TIMESTAMP_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(
            (key, val)
            for key, val in record.__dict__.items()
            if key not in _BUILTIN_RECORD_FIELDS and not key.startswith("_")
        )
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class _RunContextAdapter(logging.LoggerAdapter):
    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def run_logger(
    logger: logging.Logger,
    run: "RunMetadata",
    org_id: str | None = None,
) -> logging.LoggerAdapter:
    """Wrap ``logger`` so every record carries the run slug and yard id.

    ``org_id`` overrides ``run.org_id`` (a batch run logs per yard).
    """
    return _RunContextAdapter(
        logger, {"run_slug": run.run_slug, "org_id": org_id or run.org_id}
    )


def configure_logging(config: "LoggingConfig") -> None:
    """Install stdout (and optional file) handlers on the root logger.

    Replaces any handlers a previous call installed.

    Args:
        config: ``AppConfig.logging``.
    """
    level = logging.getLevelName(config.level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    formatter: logging.Formatter = JsonLineFormatter() if config.json_format else TextFormatter()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)
