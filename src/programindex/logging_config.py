"""
Structured logging configuration for the program index generator.

Provides one-line JSON logs (for CI runners) or human-readable output with:
- Security filtering (no tokens in extras or messages)
- Bounded payloads (IDL and checksum documents are never dumped into logs)
- Normalized URLs (path only, no query strings)

Usage:
    from programindex.logging_config import setup_logging

    setup_logging()  # Call once at startup
    logger = logging.getLogger(__name__)
    logger.info("message", extra={"slug": "acme__vault-v1.1.0"})
"""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import UTC, datetime
from typing import Any
from urllib.parse import urlsplit

_URL_PATTERN = re.compile(r"(https?://[^\s\"'<>]+)")
_SENSITIVE_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"\b(bearer|token)[=:\s]+['\"]?[\w\-\.]+['\"]?", re.I), "[TOKEN]"),
]

# Fields that should never appear in logs (CI tokens end up in env-derived extras)
BLOCKED_FIELDS: frozenset[str] = frozenset(
    {
        "api_key",
        "secret",
        "token",
        "password",
        "auth",
        "authorization",
        "bearer",
        "credential",
        "github_token",
    }
)

# Fields whose raw value is too large or too variable to log as-is
HIGH_CARDINALITY_FIELDS: dict[str, str] = {
    "url": "endpoint",
    "idl": "[IDL]",
    "body": "[BODY]",
    "addresses": "[ADDRESSES]",
    "checksums": "[CHECKSUMS]",
}

# Attributes every LogRecord carries; anything else came in through `extra`
_RECORD_ATTRS: frozenset[str] = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "message",
        "taskName",
    }
)


def _normalize_url(url: str) -> str:
    """Extract the path component of a URL."""
    return urlsplit(url).path or "/"


def _sanitize_url_in_text(match: re.Match[str]) -> str:
    path = _normalize_url(match.group(1))
    return path if path != "/" else "[URL]"


def _sanitize_text(text: str) -> str:
    """Sanitize free-form text (msg, exc).

    URLs are reduced to their path and credential-looking substrings are
    replaced with placeholders.
    """
    if not text:
        return text

    result = _URL_PATTERN.sub(_sanitize_url_in_text, text)
    for pattern, replacement in _SENSITIVE_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


def _filter_log_record(record: dict[str, Any], *, _depth: int = 0) -> dict[str, Any]:
    """Filter blocked and oversized fields from the extra part of a log record.

    Recursively filters nested dicts up to depth 3.
    """
    if _depth > 3:
        return {"_truncated": "max depth exceeded"}

    filtered: dict[str, Any] = {}

    for key, value in record.items():
        key_lower = key.lower()

        if any(blocked in key_lower for blocked in BLOCKED_FIELDS):
            continue

        if key_lower in HIGH_CARDINALITY_FIELDS:
            if key_lower == "url" and isinstance(value, str):
                filtered["endpoint"] = _normalize_url(value)
            else:
                filtered[key] = HIGH_CARDINALITY_FIELDS[key_lower]
            continue

        if isinstance(value, (int, float, bool, type(None))):
            filtered[key] = value
        elif isinstance(value, str):
            filtered[key] = _sanitize_text(value)
        elif isinstance(value, (list, tuple)):
            if len(value) <= 10:
                filtered[key] = list(value)
            else:
                filtered[key] = f"[list:{len(value)} items]"
        elif isinstance(value, dict):
            filtered[key] = _filter_log_record(value, _depth=_depth + 1)
        else:
            filtered[key] = _sanitize_text(str(value))

    return filtered


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS}


class JsonFormatter(logging.Formatter):
    """JSON log formatter, one object per line.

    Output format:
    {"ts":"2024-01-01T00:00:00.000+00:00","level":"INFO","logger":"module","msg":"...", ...}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_dict: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "msg": _sanitize_text(record.getMessage()),
        }

        if record.levelno >= logging.WARNING:
            log_dict["file"] = record.filename
            log_dict["line"] = record.lineno

        if record.exc_info:
            log_dict["exc"] = _sanitize_text(self.formatException(record.exc_info))

        extra = _extra_fields(record)
        if extra:
            log_dict.update(_filter_log_record(extra))

        return json.dumps(log_dict, default=str, ensure_ascii=False)


class SimpleFormatter(logging.Formatter):
    """Human-readable formatter for local runs."""

    def format(self, record: logging.LogRecord) -> str:
        base = f"{record.levelname:8s} {record.name}: {_sanitize_text(record.getMessage())}"

        extra = _extra_fields(record)
        if extra:
            filtered = _filter_log_record(extra)
            if filtered:
                extra_str = " ".join(f"{k}={v}" for k, v in filtered.items())
                base = f"{base} | {extra_str}"

        if record.exc_info:
            base = f"{base}\n{_sanitize_text(self.formatException(record.exc_info))}"

        return base


def setup_logging(
    *,
    level: int | str = logging.INFO,
    json_format: bool = True,
    stream: Any = None,
) -> None:
    """Configure logging for the application.

    Call once at startup.

    Args:
        level: Log level (default INFO).
        json_format: Use JSON formatter (default True for CI).
        stream: Output stream (default stderr).
    """
    if stream is None:
        stream = sys.stderr

    handler = logging.StreamHandler(stream)
    handler.setFormatter(JsonFormatter() if json_format else SimpleFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
