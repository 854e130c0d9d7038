"""Structured logging for the search API.

Every record leaving the process goes through two handler filters: one that
stamps the current request id (kept in a ``ContextVar`` by the HTTP
middleware) and one that masks caller-identifying and secret fields. Caller
identities, client addresses and session ids feed the rate limiter, so
they are masked like credentials.

Records are rendered as one JSON object per line by default, or as a
single human-readable line with ``LOG_FORMAT=plain``.
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging import LogRecord
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterable, Mapping

from showroom.core.config import LogSettings, settings

REDACTED = "[REDACTED]"

_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)

SENSITIVE_KEYS_DEFAULT: frozenset[str] = frozenset(
    {
        # credentials
        "api_key",
        "x_api_key",
        "app_api_keys",
        "authorization",
        "token",
        "secret",
        "password",
        "cookie",
        "set_cookie",
        # caller identity used for rate limiting
        "identity",
        "client_ip",
        "x_forwarded_for",
        "session_id",
        "x_session_id",
        # buyer contact data from listing enquiries
        "phone",
        "email",
    }
)

# Standard LogRecord attributes; anything else on a record came from ``extra``
_RECORD_ATTRS = frozenset(vars(LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


def set_request_id(request_id: str | None) -> None:
    _request_id_var.set(request_id)


def get_request_id() -> str | None:
    return _request_id_var.get()


def clear_request_id() -> None:
    _request_id_var.set(None)


class Redactor:
    """Masks values stored under sensitive keys, at any nesting depth.

    Keys are compared case-insensitively with ``-`` and ``_`` treated alike,
    so ``X-Forwarded-For`` and ``x_forwarded_for`` are both caught.
    """

    def __init__(self, sensitive_keys: Iterable[str] | None = None) -> None:
        keys = SENSITIVE_KEYS_DEFAULT if sensitive_keys is None else sensitive_keys
        self.sensitive_keys = frozenset(self._normalize(key) for key in keys)

    @staticmethod
    def _normalize(key: str) -> str:
        return key.lower().replace("-", "_")

    def is_sensitive(self, key: str) -> bool:
        return self._normalize(key) in self.sensitive_keys

    def redact(self, value: Any) -> Any:
        if isinstance(value, Mapping):
            return {
                k: REDACTED if isinstance(k, str) and self.is_sensitive(k) else self.redact(v)
                for k, v in value.items()
            }
        if isinstance(value, (list, tuple)):
            return type(value)(self.redact(v) for v in value)
        return value

    def extras(self, record: LogRecord) -> dict[str, Any]:
        """Return the ``extra`` fields of ``record`` with sensitive values masked."""

        return {
            key: REDACTED if self.is_sensitive(key) else self.redact(value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }


class RequestIdFilter(logging.Filter):
    """Attach the current request id unless the record already carries one."""

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        if getattr(record, "request_id", None) is None:
            request_id = get_request_id()
            if request_id:
                record.request_id = request_id
        return True


class SensitiveDataFilter(logging.Filter):
    """Mask sensitive extras in place, before any formatter sees them."""

    def __init__(self, sensitive_keys: Iterable[str] | None = None) -> None:
        super().__init__()
        self.redactor = Redactor(sensitive_keys)

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        for key, value in self.redactor.extras(record).items():
            setattr(record, key, value)
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, logger, event and extras."""

    def __init__(
        self,
        *,
        sensitive_keys: Iterable[str] | None = None,
        ensure_ascii: bool = True,
    ) -> None:
        super().__init__()
        self.redactor = Redactor(sensitive_keys)
        self.ensure_ascii = ensure_ascii

    def format(self, record: LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = getattr(record, "request_id", None) or get_request_id()
        if request_id:
            payload["request_id"] = request_id

        payload.update(self.redactor.extras(record))

        if record.exc_info and record.exc_info[0] is not None:
            payload["exc_type"] = record.exc_info[0].__name__

        return json.dumps(payload, default=str, ensure_ascii=self.ensure_ascii)


class PlainFormatter(logging.Formatter):
    """Human-readable lines for local development."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)-7s %(name)s %(message)s")

    def format(self, record: LogRecord) -> str:
        line = super().format(record)
        request_id = getattr(record, "request_id", None)
        return f"{line} request_id={request_id}" if request_id else line


def _build_handler(log_settings: LogSettings) -> logging.Handler:
    if log_settings.output.lower() != "file":
        return logging.StreamHandler(sys.stdout)

    file_path = Path(log_settings.file_path or "logs/showroom.log")
    file_path.parent.mkdir(parents=True, exist_ok=True)
    if log_settings.max_bytes:
        return RotatingFileHandler(
            file_path,
            maxBytes=log_settings.max_bytes,
            backupCount=log_settings.backup_count,
            encoding="utf-8",
        )
    return logging.FileHandler(file_path, encoding="utf-8")


def configure_logging(log_settings: LogSettings | None = None, *, debug: bool | None = None) -> None:
    """Install the redacting handler on the root logger.

    Args:
        log_settings: Output settings; defaults to the environment-loaded ones.
        debug: Force DEBUG level; defaults to ``APP_DEBUG``.
    """

    cfg = log_settings or settings.log
    if debug is None:
        debug = settings.app.debug

    handler = _build_handler(cfg)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(PlainFormatter() if cfg.format.lower() == "plain" else JsonFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.DEBUG if debug else getattr(logging, cfg.level.upper(), logging.INFO))

    # uvicorn installs its own handlers; keep its records from printing twice
    for name in ("uvicorn", "uvicorn.access"):
        logging.getLogger(name).propagate = False
