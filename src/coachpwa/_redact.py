"""Helpers for safe debug logging.

Intercepted requests carry session cookies and bearer tokens for the
application backend. This module strips those before headers or URLs are
emitted in DEBUG logs.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

_SENSITIVE_VALUE_KEYS: frozenset[str] = frozenset(
    {
        "authorization",
        "proxy-authorization",
        "cookie",
        "set-cookie",
        "x-api-key",
        "x-csrf-token",
        "token",
        "access_token",
        "password",
        "session",
    }
)


def redact_headers(headers: Mapping[str, Any], *, max_value: int = 512) -> dict[str, str]:
    """Copy *headers* for a debug log line, masking credentials and cutting long values."""
    return {str(name): _header_value(str(name), value, max_value) for name, value in headers.items()}


def _header_value(name: str, value: Any, max_value: int) -> str:
    if name.lower() in _SENSITIVE_VALUE_KEYS:
        return "<redacted>"
    if isinstance(value, bytes):
        return f"<bytes:{len(value)}b>"
    text = str(value)
    if len(text) > max_value:
        return f"{text[:max_value]}...<truncated>"
    return text


def redact_url(url: str) -> str:
    """Mask sensitive query parameters (``?token=...``) in *url*."""
    parts = urlsplit(url)
    if not parts.query:
        return url
    query = [
        (key, "<redacted>" if key.lower() in _SENSITIVE_VALUE_KEYS else value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
    ]
    return urlunsplit(parts._replace(query=urlencode(query, safe="<>")))
