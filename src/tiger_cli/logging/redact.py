"""Utilities for redacting secrets from log records."""

from __future__ import annotations

import logging
import os
import re
import threading
from typing import Any

from ..core.constants import ENV_API_KEY, ENV_NEW_PASSWORD

REDACTED = "[REDACTED]"

_PASSWORD_PATTERN = re.compile(r"(?i)(password\s*[:=]\s*)(\S+)")
_AUTHORIZATION_PATTERN = re.compile(r"(?i)(authorization\s*[:=]\s*)(.+)")
_URI_PASSWORD_PATTERN = re.compile(r"(postgres(?:ql)?://[^:/@\s]+:)([^@\s]+)(@)")

_registered: set[str] = set()
_lock = threading.Lock()


def register_secret(value: str | None) -> None:
    """Make ``value`` redacted from every record that passes the filter."""
    if not value:
        return
    with _lock:
        _registered.add(value)


def _secret_values() -> list[str]:
    values = [os.environ.get(name, "") for name in (ENV_API_KEY, ENV_NEW_PASSWORD, "PGPASSWORD")]
    with _lock:
        values.extend(_registered)
    # Longest first so a secret containing another is fully masked
    return sorted((v for v in values if v), key=len, reverse=True)


def redact_text(raw: str) -> str:
    cleaned = _URI_PASSWORD_PATTERN.sub(r"\1" + REDACTED + r"\3", raw)
    cleaned = _AUTHORIZATION_PATTERN.sub(r"\1" + REDACTED, cleaned)
    cleaned = _PASSWORD_PATTERN.sub(r"\1" + REDACTED, cleaned)
    for secret in _secret_values():
        if secret in cleaned:
            cleaned = cleaned.replace(secret, REDACTED)
    return cleaned


class RedactionFilter(logging.Filter):
    """Logging filter that scrubs passwords and API keys from records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = redact_text(self._render_message(record.msg, record.args))
        record.args = ()
        return True

    def _render_message(self, msg: Any, args: Any) -> str:
        if args:
            try:
                return str(msg) % args
            except (TypeError, ValueError):
                return str(msg)
        return str(msg)


def install_redaction_filter(logger: logging.Logger | None = None) -> None:
    """Attach :class:`RedactionFilter` to the provided logger's handlers."""
    target = logger or logging.getLogger("tiger_cli")
    for handler in target.handlers:
        if not any(isinstance(flt, RedactionFilter) for flt in handler.filters):
            handler.addFilter(RedactionFilter())


__all__ = [
    "REDACTED",
    "RedactionFilter",
    "install_redaction_filter",
    "redact_text",
    "register_secret",
]
