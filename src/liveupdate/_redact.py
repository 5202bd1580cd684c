"""Payload summaries for debug logs.

Frames carry arbitrary remote values: scene graphs can be large and a
``set`` may write credentials into a remote object.  Frames are logged
through :func:`redact_for_log`, never as raw text.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_MAX_DEPTH = 20
_REDACTED = "<redacted>"

# Compared after lowercasing and removing ``_``/``-``.
_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "apikey",
        "accesstoken",
        "authorization",
        "cookie",
        "passphrase",
        "password",
        "refreshtoken",
        "secret",
        "token",
    }
)


def _is_sensitive(key: object) -> bool:
    normalized = str(key).lower().replace("_", "").replace("-", "")
    return normalized in _SENSITIVE_KEYS


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return f"{text[:limit]}…<+{len(text) - limit} chars>"


def redact_for_log(value: Any, *, max_string: int = 512, max_items: int = 50, _depth: int = 0) -> Any:
    """Return a log-safe copy of *value*.

    Strings are cut at *max_string* characters, containers at *max_items*
    entries, and mapping entries whose key looks like a credential are
    replaced by ``"<redacted>"``.  Ids and paths pass through unchanged.
    """
    if _depth > _MAX_DEPTH:
        return "<nested too deep>"
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        return _truncate(value, max_string)
    if isinstance(value, (bytes, bytearray)):
        return f"<{len(value)} bytes>"

    def nested(item: Any) -> Any:
        return redact_for_log(item, max_string=max_string, max_items=max_items, _depth=_depth + 1)

    if isinstance(value, Mapping):
        entries = list(value.items())
        summary = {str(key): _REDACTED if _is_sensitive(key) else nested(item) for key, item in entries[:max_items]}
        if len(entries) > max_items:
            summary["…"] = f"<+{len(entries) - max_items} entries>"
        return summary
    if isinstance(value, (list, tuple)):
        summary_items = [nested(item) for item in value[:max_items]]
        if len(value) > max_items:
            summary_items.append(f"<+{len(value) - max_items} items>")
        return summary_items
    return repr(value)
