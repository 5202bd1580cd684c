"""Wire and request models."""

from liveupdate.models.configuration import SubscriptionConfiguration
from liveupdate.models.messages import (
    InboundMessage,
    SetItem,
    SetMessage,
    SubscribeBody,
    SubscribeMessage,
    UnsubscribeBody,
    UnsubscribeMessage,
    ValueChange,
)
from liveupdate.models.requests import SubscribeRequest
from liveupdate.models.subscription import SubscriptionEntry, SubscriptionKey

__all__ = [
    "InboundMessage",
    "SetItem",
    "SetMessage",
    "SubscribeBody",
    "SubscribeMessage",
    "SubscribeRequest",
    "SubscriptionConfiguration",
    "SubscriptionEntry",
    "SubscriptionKey",
    "UnsubscribeBody",
    "UnsubscribeMessage",
    "ValueChange",
]
