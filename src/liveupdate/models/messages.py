"""Pydantic models for the live update wire protocol.

Client → remote::

    {"subscribe": {"object": ..., "properties": [...], "configuration": {...}}}
    {"unsubscribe": {"ids": [...]}}
    {"set": [{"id": ..., "value": ...}, ...]}

Remote → client::

    {"subscriptions": [{"id": ..., "objectPath": ..., "propertyPath": ...}, ...]}
    {"valuesChanged": [{"id": ..., "value": ...}, ...]}
    {"error": "..."}
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from liveupdate.models._base import LiveUpdateBaseModel
from liveupdate.models.subscription import SubscriptionEntry


class ValueChange(LiveUpdateBaseModel):
    """A pushed value for one server id."""

    id: int = Field(..., ge=0)
    value: Any


class InboundMessage(LiveUpdateBaseModel):
    """A decoded remote → client frame.

    Any combination of the three fields may be present; absent fields stay
    ``None`` (an empty ``subscriptions`` list is a valid, empty snapshot).
    """

    error: str | None = None
    subscriptions: list[SubscriptionEntry] | None = None
    values_changed: list[ValueChange] | None = None


class SubscribeBody(LiveUpdateBaseModel):
    object: str
    properties: list[str]
    configuration: dict[str, Any] | None = None


class SubscribeMessage(LiveUpdateBaseModel):
    subscribe: SubscribeBody


class UnsubscribeBody(LiveUpdateBaseModel):
    ids: list[int]


class UnsubscribeMessage(LiveUpdateBaseModel):
    unsubscribe: UnsubscribeBody

    @field_validator("unsubscribe")
    @classmethod
    def _ids_non_empty(cls, value: UnsubscribeBody) -> UnsubscribeBody:
        if not value.ids:
            raise ValueError("unsubscribe requires at least one id")
        return value


class SetItem(LiveUpdateBaseModel):
    id: int
    value: Any


class SetMessage(LiveUpdateBaseModel):
    set: list[SetItem]

    def to_wire(self) -> dict[str, Any]:
        # exclude_none would drop explicit ``null`` values being written.
        return {"set": [{"id": item.id, "value": item.value} for item in self.set]}
