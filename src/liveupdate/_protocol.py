"""Encoding and decoding of live update JSON text frames."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from liveupdate.exceptions import LiveUpdateProtocolError, LiveUpdateRemoteError
from liveupdate.models._base import LiveUpdateBaseModel
from liveupdate.models.messages import (
    InboundMessage,
    SetItem,
    SetMessage,
    SubscribeBody,
    SubscribeMessage,
    UnsubscribeBody,
    UnsubscribeMessage,
)


def encode(message: LiveUpdateBaseModel) -> str:
    """Serialize an outbound message to a compact JSON text frame."""
    return json.dumps(message.to_wire(), separators=(",", ":"))


def build_subscribe(
    object_path: str,
    properties: Iterable[str],
    configuration: Mapping[str, Any] | None = None,
) -> SubscribeMessage:
    """Build a subscribe request; an empty *configuration* is left out entirely."""
    return SubscribeMessage(
        subscribe=SubscribeBody(
            object=object_path,
            properties=list(properties),
            configuration=dict(configuration) if configuration else None,
        )
    )


def build_unsubscribe(ids: Iterable[int]) -> UnsubscribeMessage:
    return UnsubscribeMessage(unsubscribe=UnsubscribeBody(ids=list(ids)))


def build_set(pairs: Iterable[tuple[int, Any]]) -> SetMessage:
    return SetMessage(set=[SetItem(id=server_id, value=value) for server_id, value in pairs])


def decode_frame(text: str | bytes) -> InboundMessage:
    """Parse an inbound frame.

    Raises :class:`LiveUpdateProtocolError` when the frame is not a JSON
    object matching the message schema, and :class:`LiveUpdateRemoteError`
    when the remote service reports an error.
    """
    frame = text.decode("utf-8", errors="replace") if isinstance(text, bytes) else text
    try:
        parsed = json.loads(frame)
    except json.JSONDecodeError as exc:
        raise LiveUpdateProtocolError(f"Frame is not JSON: {exc}", frame=frame) from exc

    if not isinstance(parsed, dict):
        raise LiveUpdateProtocolError("Frame is not a JSON object", frame=frame)

    try:
        message = InboundMessage.model_validate(parsed)
    except ValidationError as exc:
        raise LiveUpdateProtocolError(f"Frame does not match schema: {exc}", frame=frame) from exc

    if message.error:
        raise LiveUpdateRemoteError(f"Live update error: {message.error}", remote_message=message.error)
    return message
