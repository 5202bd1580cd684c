"""Pydantic request models for client entrypoints.

These models provide a consistent "validate → normalize → execute" flow.
They are used internally by :class:`liveupdate.client.LiveUpdateClient`.
"""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, field_validator


class SubscribeRequest(BaseModel):
    """A subscribe call: one object path, named property paths."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
    )

    object_path: str
    names: dict[str, str]

    @field_validator("object_path")
    @classmethod
    def _object_path_non_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("object_path must be non-empty")
        return value

    @field_validator("names")
    @classmethod
    def _names_non_empty(cls, value: Mapping[str, str]) -> dict[str, str]:
        if not value:
            raise ValueError("at least one property must be requested")
        for name, property_path in value.items():
            if not name or not property_path.strip():
                raise ValueError(f"invalid property mapping {name!r}: {property_path!r}")
        return dict(value)

    @property
    def property_paths(self) -> list[str]:
        """Distinct property paths, in request order."""
        return list(dict.fromkeys(self.names.values()))
