"""Client configuration for liveupdate."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from liveupdate._constants import DEFAULT_ENDPOINT, DEFAULT_SCHEME
from liveupdate.exceptions import LiveUpdateConfigError


def _env_float(value: str | None) -> float | None:
    if value is None or not value.strip():
        return None
    try:
        return float(value)
    except ValueError as exc:
        raise LiveUpdateConfigError(f"Expected a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class LiveUpdateConfig:
    """Client configuration.

    Parameters
    ----------
    director : str
        Host (and optional port) of the director serving the live update
        endpoint, e.g. ``"localhost:8080"``.
    scheme : str
        WebSocket scheme, ``"ws"`` or ``"wss"``.
    endpoint : str
        Path of the live update endpoint on the director.
    update_frequency_ms : float or None
        Default ``updateFrequencyMs`` sent with every subscription that does
        not override it.  ``None`` sends no configuration at all.
    connect_timeout : float
        Seconds to wait for the WebSocket handshake.
    heartbeat : float or None
        Interval in seconds for WebSocket ping/pong keepalive.  ``None``
        disables it.
    """

    director: str
    scheme: str = DEFAULT_SCHEME
    endpoint: str = DEFAULT_ENDPOINT
    update_frequency_ms: float | None = None
    connect_timeout: float = 15.0
    heartbeat: float | None = None

    def __post_init__(self) -> None:
        if not self.director or not self.director.strip():
            raise LiveUpdateConfigError("'director' parameter is required.")
        if self.scheme not in ("ws", "wss"):
            raise LiveUpdateConfigError(f"Unsupported scheme {self.scheme!r}; expected 'ws' or 'wss'")
        if self.update_frequency_ms is not None and self.update_frequency_ms < 0:
            raise LiveUpdateConfigError("update_frequency_ms must be >= 0")

    @property
    def url(self) -> str:
        """Full WebSocket URL of the live update endpoint."""
        endpoint = self.endpoint if self.endpoint.startswith("/") else f"/{self.endpoint}"
        return f"{self.scheme}://{self.director.strip()}{endpoint}"

    def default_configuration(self) -> dict[str, Any]:
        """Client-level subscription configuration in wire form."""
        if self.update_frequency_ms is None:
            return {}
        return {"updateFrequencyMs": self.update_frequency_ms}

    @classmethod
    def from_env(cls, **overrides: Any) -> LiveUpdateConfig:
        """Create configuration from environment variables.

        Reads ``LIVEUPDATE_DIRECTOR`` and the optional ``LIVEUPDATE_*``
        variables below. Explicit keyword arguments override environment
        values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "LIVEUPDATE_DIRECTOR": "director",
            "LIVEUPDATE_SCHEME": "scheme",
            "LIVEUPDATE_ENDPOINT": "endpoint",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_NUMERIC_MAP = {
            "LIVEUPDATE_UPDATE_FREQUENCY_MS": "update_frequency_ms",
            "LIVEUPDATE_CONNECT_TIMEOUT": "connect_timeout",
            "LIVEUPDATE_HEARTBEAT": "heartbeat",
        }
        for env_key, field_name in _ENV_NUMERIC_MAP.items():
            number = _env_float(env.get(env_key))
            if number is not None and field_name not in overrides:
                config_kwargs[field_name] = number

        config_kwargs.update(overrides)
        if "director" not in config_kwargs:
            raise LiveUpdateConfigError("'director' parameter is required (set LIVEUPDATE_DIRECTOR).")

        return cls(**config_kwargs)
