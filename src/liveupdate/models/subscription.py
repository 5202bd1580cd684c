"""Subscription keys and snapshot entries."""

from __future__ import annotations

from typing import NamedTuple

from pydantic import Field

from liveupdate._constants import KEY_SEPARATOR
from liveupdate.models._base import LiveUpdateBaseModel


class SubscriptionKey(NamedTuple):
    """Client-side identity of one trackable value.

    Stable across reconnects, unlike the server id it is mapped to.
    """

    object_path: str
    property_path: str

    def __str__(self) -> str:
        return f"{self.object_path}{KEY_SEPARATOR}{self.property_path}"


class SubscriptionEntry(LiveUpdateBaseModel):
    """One ``{id, objectPath, propertyPath}`` triple of a snapshot."""

    id: int = Field(..., ge=0)
    object_path: str
    property_path: str

    @property
    def key(self) -> SubscriptionKey:
        return SubscriptionKey(self.object_path, self.property_path)
