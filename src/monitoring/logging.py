"""
Structured logging for StakePool.

Every record is rendered from the same set of fields: the message, the
per-request context bound by the Flask middleware, and any ``extra``
values passed by the caller (``event``, ``account``, ``amount``...).
``LOG_FORMAT=json`` emits one JSON object per line; otherwise a compact
colored line is written for development.

Credentials never reach the output: API keys, bearer tokens and private
keys are masked, and hex wallet addresses are shortened to 0xabcd...wxyz.
"""

import json
import logging
import os
import re
import sys
import threading
from datetime import UTC, datetime
from typing import Any

# ============================================================
# Scrubbing
# ============================================================

MASK = "[REDACTED]"

# (pattern, replacement) pairs applied to every logged string, in order
TEXT_RULES = [
    (
        re.compile(r"(api[_-]?key|token|secret|password)([\"']?\s*[:=]\s*[\"']?)([^\s\"',}{]+)", re.IGNORECASE),
        rf"\1\2{MASK}",
    ),
    (re.compile(r"(bearer\s+)\S+", re.IGNORECASE), rf"\1{MASK}"),
    (re.compile(r"-----BEGIN [A-Z ]*PRIVATE KEY-----.*?-----END [A-Z ]*PRIVATE KEY-----", re.DOTALL), "[REDACTED_PRIVATE_KEY]"),
    (re.compile(r"\b(?:0x)?[0-9a-fA-F]{64}\b"), "[REDACTED_KEY]"),
    (re.compile(r"\b0x([0-9a-fA-F]{4})[0-9a-fA-F]{32}([0-9a-fA-F]{4})\b"), r"0x\1...\2"),
]

# Keys whose values are masked outright, compared lowercased with "-" as "_"
SECRET_KEYS = frozenset({
    "api_key",
    "apikey",
    "x_api_key",
    "authorization",
    "password",
    "secret",
    "secret_key",
    "private_key",
    "token",
    "access_token",
    "credentials",
})

# Attributes every LogRecord carries; anything else came in through ``extra``
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "taskName"}


def redact_string(text: str) -> str:
    """Apply the text rules to a single string."""
    for pattern, replacement in TEXT_RULES:
        text = pattern.sub(replacement, text)
    return text


def redact_sensitive_data(value: Any, depth: int = 0, max_depth: int = 10) -> Any:
    """
    Scrub a logged value, descending into dicts and lists.

    Nesting deeper than ``max_depth`` is replaced by a marker.
    """
    if depth > max_depth:
        return "[MAX_DEPTH_EXCEEDED]"
    if isinstance(value, str):
        return redact_string(value)
    if isinstance(value, dict):
        return {
            k: MASK if str(k).lower().replace("-", "_") in SECRET_KEYS
            else redact_sensitive_data(v, depth + 1, max_depth)
            for k, v in value.items()
        }
    if isinstance(value, list):
        return [redact_sensitive_data(v, depth + 1, max_depth) for v in value]
    return value


# ============================================================
# Request Context
# ============================================================

_local = threading.local()


def _bound() -> dict[str, Any]:
    fields = getattr(_local, "fields", None)
    if fields is None:
        fields = _local.fields = {}
    return fields


def set_request_context(**fields) -> None:
    """Bind fields to every record logged by this thread until cleared."""
    _bound().update(fields)


def clear_request_context() -> None:
    _local.fields = {}


class LoggingContext:
    """
    Bind fields for the duration of a block, then restore what was bound before.

    Usage:
        with LoggingContext(account="alice"):
            logger.info("Processing claim")
    """

    def __init__(self, **fields):
        self.fields = fields
        self._saved: dict[str, Any] = {}

    def __enter__(self):
        self._saved = dict(_bound())
        set_request_context(**self.fields)
        return self

    def __exit__(self, _exc_type, _exc_val, _exc_tb):
        _local.fields = self._saved
        return False


# ============================================================
# Formatters
# ============================================================

class _FieldsFormatter(logging.Formatter):
    """Collects the scrubbed message, context and extras for a record."""

    def __init__(self, redact: bool = True):
        super().__init__()
        self.redact = redact

    def _scrub(self, value: Any) -> Any:
        return redact_sensitive_data(value) if self.redact else value

    def fields(self, record: logging.LogRecord) -> tuple[str, dict[str, Any], dict[str, Any]]:
        extras = {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS}
        return (
            self._scrub(record.getMessage()),
            self._scrub(dict(_bound())),
            self._scrub(extras),
        )


class JSONFormatter(_FieldsFormatter):
    """
    One JSON object per record.

    {"timestamp": "...+00:00", "level": "INFO", "logger": "staking.engine",
     "message": "stake committed", "event": "staking.staked", "amount": 1000}

    Warnings and above carry a ``location``; a bound request context is
    nested under ``context``; extras are merged at the top level.
    """

    def __init__(self, include_stack_info: bool = True, redact: bool = True):
        super().__init__(redact=redact)
        self.include_stack_info = include_stack_info

    def format(self, record: logging.LogRecord) -> str:
        message, context, extras = self.fields(record)
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": message,
        }
        if record.levelno >= logging.WARNING:
            entry["location"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }
        if record.exc_info and self.include_stack_info:
            entry["exception"] = self.formatException(record.exc_info)
        if context:
            entry["context"] = context
        entry.update(extras)
        return json.dumps(entry, default=str)


class ConsoleFormatter(_FieldsFormatter):
    """Single colored line per record: time, level letter, logger, message, fields."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        message, context, extras = self.fields(record)
        color = self.LEVEL_COLORS.get(record.levelno, "")
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3]

        parts = [f"{color}{stamp} {record.levelname[0]} [{record.name}]{self.RESET} {message}"]
        if context:
            parts.append(f"{color}(" + " ".join(f"{k}={v}" for k, v in context.items()) + f"){self.RESET}")
        if extras:
            parts.append("[" + ", ".join(f"{k}={v}" for k, v in extras.items()) + "]")

        line = " ".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


# ============================================================
# Setup
# ============================================================

def configure_logging(level: str = "INFO", json_output: bool | None = None) -> None:
    """
    Install a single stdout handler on the root logger.

    ``json_output`` defaults to ``LOG_FORMAT=json`` from the environment.
    """
    if json_output is None:
        json_output = os.getenv("LOG_FORMAT", "").lower() == "json"

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if json_output else ConsoleFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Per-request lines come from the middleware; the servers' own are noise
    for name in ("werkzeug", "gunicorn.access"):
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


if not logging.getLogger().handlers:
    configure_logging(level=os.getenv("LOG_LEVEL", "INFO"))
