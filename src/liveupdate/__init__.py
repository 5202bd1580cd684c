"""liveupdate - Async Python client keeping remote object properties in sync over WebSocket."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyliveupdate")
except PackageNotFoundError:
    __version__ = "0+local"
from liveupdate._constants import describe_close_code
from liveupdate._transport import ConnectionStatus, Transport, WebSocketTransport
from liveupdate.accessor import Accessor, Subscription
from liveupdate.client import DebugInfo, LiveUpdateClient
from liveupdate.config import LiveUpdateConfig
from liveupdate.exceptions import (
    LiveUpdateConfigError,
    LiveUpdateError,
    LiveUpdateProtocolError,
    LiveUpdateRemoteError,
    LiveUpdateTransportError,
)
from liveupdate.models import SubscriptionEntry, SubscriptionKey

__all__ = [
    "__version__",
    "Accessor",
    "ConnectionStatus",
    "DebugInfo",
    "LiveUpdateClient",
    "LiveUpdateConfig",
    "LiveUpdateConfigError",
    "LiveUpdateError",
    "LiveUpdateProtocolError",
    "LiveUpdateRemoteError",
    "LiveUpdateTransportError",
    "Subscription",
    "SubscriptionEntry",
    "SubscriptionKey",
    "Transport",
    "WebSocketTransport",
    "describe_close_code",
]
