"""Subscription configuration validation and merging.

Configuration travels on the wire as a camelCase mapping
(``{"updateFrequencyMs": 250}``).  It can be given once per client (the
default) and once per subscribe call; the per-call mapping overrides the
default key by key.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import ConfigDict, Field, ValidationError

from liveupdate._constants import ALLOWED_CONFIGURATION_KEYS
from liveupdate.exceptions import LiveUpdateConfigError
from liveupdate.models._base import LiveUpdateBaseModel


class SubscriptionConfiguration(LiveUpdateBaseModel):
    """Typed view of the configuration options the remote service accepts."""

    model_config = ConfigDict(extra="forbid")

    update_frequency_ms: float | None = Field(default=None, ge=0)


def validate_configuration(
    options: Mapping[str, Any] | None,
    *,
    label: str = "configuration",
) -> dict[str, Any]:
    """Check *options* against the allow list and return a plain copy.

    Raises :class:`LiveUpdateConfigError` naming every unknown key, or when a
    known key carries a value of the wrong type.
    """
    if not options:
        return {}

    invalid = [str(key) for key in options if key not in ALLOWED_CONFIGURATION_KEYS]
    if invalid:
        raise LiveUpdateConfigError(
            f"Invalid {label} keys: {', '.join(invalid)}. Allowed keys: {', '.join(ALLOWED_CONFIGURATION_KEYS)}",
            invalid_keys=invalid,
        )

    try:
        SubscriptionConfiguration.model_validate(dict(options))
    except ValidationError as exc:
        raise LiveUpdateConfigError(f"Invalid {label} values: {exc}") from exc
    return dict(options)


def merge_configuration(
    defaults: Mapping[str, Any] | None,
    overrides: Mapping[str, Any] | None,
) -> dict[str, Any] | None:
    """Return *defaults* overridden by *overrides*, or ``None`` when empty.

    ``None`` means "omit the configuration field", never an empty object.
    """
    merged: dict[str, Any] = {**(defaults or {}), **(overrides or {})}
    return merged or None
