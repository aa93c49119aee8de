"""
Structured JSON Logging Module.

Every component receives a ``StructuredLogger`` through its constructor.
Records are written as one JSON object per line to stdout and, unless
disabled, to a rotating log file.

Context passed through ``extra`` is split in two: the record-level keys
the audit trail queries on (``action``, ``collection``, ``record_id``)
are lifted to the top level of the JSON object, anything else lands
under ``"extra"``.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, TextIO, Union

# Context keys promoted to top-level JSON fields.
PROMOTED_KEYS: tuple[str, ...] = ("action", "collection", "record_id")

_JsonScalar = Union[str, int, float, bool, None]


def _json_scalar(value: object) -> _JsonScalar:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


class JSONFormatter(logging.Formatter):
    """Renders a ``LogRecord`` as a single-line JSON object.

    Output keys: ``timestamp`` (UTC ISO-8601), ``level``, ``logger_name``,
    ``message``, any of ``PROMOTED_KEYS`` present on the record, then
    ``extra`` and ``exception`` when there is something to put in them.
    """

    _STANDARD_ATTRS: frozenset[str] = frozenset(
        logging.LogRecord(
            name="", level=0, pathname="", lineno=0, msg="", args=(), exc_info=None
        ).__dict__.keys()
    ) | {"message", "asctime", "taskName"}

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger_name": record.name,
            "message": record.getMessage(),
        }

        extra: dict[str, _JsonScalar] = {}
        for key, value in record.__dict__.items():
            if key in self._STANDARD_ATTRS:
                continue
            if key in PROMOTED_KEYS:
                entry[key] = _json_scalar(value)
            else:
                extra[key] = _json_scalar(value)
        if extra:
            entry["extra"] = extra

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            entry["exception"] = record.exc_text

        return json.dumps(entry, ensure_ascii=False, default=str)


def _resolve_level(level: Union[int, str, None], fallback: str) -> int:
    value = fallback if level is None else level
    if isinstance(value, int):
        return value
    resolved = logging.getLevelName(str(value).upper())
    return resolved if isinstance(resolved, int) else logging.INFO


class StructuredLogger:
    """Injectable wrapper around a named ``logging.Logger``.

    Usage::

        log = StructuredLogger(name="tesoreria.store")
        log.info("Loaded %d rows", 12, extra={"collection": "ingresos"})

    ``level``, ``log_file``, ``max_bytes`` and ``backup_count`` default to
    the ``LOG_*`` settings of ``AppConfig``.  ``log_file=""`` disables the
    file handler; tests use this to keep the working tree clean.

    Handlers are attached only the first time a name is seen, so building
    several wrappers for the same name never duplicates output.
    """

    def __init__(
        self,
        name: str = "tesoreria",
        level: Union[int, str, None] = None,
        stream: Optional[TextIO] = None,
        log_file: Optional[str] = None,
        max_bytes: Optional[int] = None,
        backup_count: Optional[int] = None,
    ) -> None:
        # Lazy import to avoid circular dependency at module level
        from tesoreria.config import get_config
        cfg = get_config()

        self._name = name
        self._log_file: str = cfg.LOG_FILE if log_file is None else log_file
        self._level: int = _resolve_level(level, cfg.LOG_LEVEL)
        self._logger: logging.Logger = logging.getLogger(name)
        self._logger.setLevel(self._level)
        self._logger.propagate = False

        if self._logger.handlers:
            return

        formatter = JSONFormatter()
        console = logging.StreamHandler(stream or sys.stdout)
        console.setFormatter(formatter)
        self._logger.addHandler(console)

        if not self._log_file:
            return
        try:
            log_path = Path(self._log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            rotating = RotatingFileHandler(
                filename=str(log_path),
                maxBytes=cfg.LOG_MAX_BYTES if max_bytes is None else max_bytes,
                backupCount=cfg.LOG_BACKUP_COUNT if backup_count is None else backup_count,
                encoding="utf-8",
            )
            rotating.setFormatter(formatter)
            self._logger.addHandler(rotating)
        except OSError as exc:
            self._logger.warning(
                "Could not open log file '%s': %s. Logging to console only.",
                self._log_file,
                exc,
            )

    @property
    def name(self) -> str:
        return self._name

    @property
    def logger(self) -> logging.Logger:
        """The underlying ``logging.Logger``."""
        return self._logger

    def child(self, suffix: str) -> "StructuredLogger":
        """Logger named ``<name>.<suffix>`` sharing this one's level and file."""
        return StructuredLogger(
            name=f"{self._name}.{suffix}",
            level=self._level,
            log_file=self._log_file,
        )

    def debug(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.error(msg, *args, **kwargs)

    def critical(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.critical(msg, *args, **kwargs)


def get_logger(name: str = "tesoreria") -> StructuredLogger:
    """Return a ``StructuredLogger`` for *name* configured from ``AppConfig``."""
    return StructuredLogger(name=name)
