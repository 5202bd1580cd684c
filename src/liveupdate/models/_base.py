"""Base model for live update wire payloads.

Every wire model inherits from :class:`LiveUpdateBaseModel`, which maps the
camelCase keys used on the wire (``objectPath``, ``valuesChanged``,
``updateFrequencyMs``) to snake_case fields via ``alias_generator=to_camel``.
Models are frozen; they are parsed once per frame and never patched.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class LiveUpdateBaseModel(BaseModel):
    """Base for inbound and outbound live update messages."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_wire(self) -> dict[str, Any]:
        """Dump using wire (camelCase) keys, leaving out unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)
