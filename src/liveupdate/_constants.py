"""Internal constants shared across the library."""

DEFAULT_SCHEME = "ws"
DEFAULT_ENDPOINT = "/api/session/liveupdate"

#: Separator used when rendering a subscription key as text.
KEY_SEPARATOR = "/"

#: Prefix stripped from property paths when deriving accessor names.
AUTO_NAME_PREFIX = "object."

#: Option names accepted in client-level and per-subscription configuration.
ALLOWED_CONFIGURATION_KEYS: tuple[str, ...] = ("updateFrequencyMs",)

#: Reason reported when the socket signals an error without a close code.
WEBSOCKET_ERROR_REASON = "WebSocket error"

# ------------------------------------------------------------------
# WebSocket close codes (RFC 6455 section 7.4)
# ------------------------------------------------------------------

CLOSE_CODE_REASONS: dict[int, str] = {
    1000: "Normal closure",
    1001: "Going away",
    1002: "Protocol error",
    1003: "Unsupported data",
    1005: "No status code",
    1006: "Could not establish connection",
    1007: "Invalid data",
    1008: "Policy violation",
    1009: "Message too big",
    1010: "Extension required",
    1011: "Internal error",
    1015: "TLS handshake",
}


def describe_close_code(code: int | None) -> str:
    """Return a human readable reason for a WebSocket close *code*.

    Unknown codes are rendered as the bare number; ``None`` maps to the
    "no status code" reason.
    """
    if code is None:
        return CLOSE_CODE_REASONS[1005]
    return CLOSE_CODE_REASONS.get(code, str(code))
