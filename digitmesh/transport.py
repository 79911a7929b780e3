"""Text codec for moving partial sums between worker processes.

A payload is a base-10 fixed-point string, ``[-]I.FFFF...``, carrying at
least ``digits + margin`` fractional digits, followed by a single NUL byte.
"""
import re

from mpmath.ctx_mp import MPContext

from .planner import BUFFER_OVERHEAD, TRANSPORT_MARGIN
from .render import fixed_point


TERMINATOR = b"\0"
_PAYLOAD_RE = re.compile(r"-?[0-9]+\.[0-9]+")


class TransportError(ValueError):
    pass


def buffer_size(digits: int, margin: int = TRANSPORT_MARGIN) -> int:
    return int(digits) + int(margin) + BUFFER_OVERHEAD


def serialize(x, digits: int, margin: int = TRANSPORT_MARGIN) -> bytes:
    digits = int(digits)
    if digits < 1:
        raise ValueError("digits must be >= 1")
    payload = fixed_point(x, digits + int(margin)).encode("ascii") + TERMINATOR
    limit = buffer_size(digits, margin)
    if len(payload) > limit:
        raise TransportError(f"payload of {len(payload)} bytes exceeds buffer of {limit}")
    return payload


def deserialize(payload: bytes, ctx: MPContext):
    payload = bytes(payload)
    if not payload.endswith(TERMINATOR):
        raise TransportError("missing terminator")
    try:
        text = payload[: -len(TERMINATOR)].decode("ascii")
    except UnicodeDecodeError as e:
        raise TransportError("payload is not ascii") from e
    if not _PAYLOAD_RE.fullmatch(text):
        raise TransportError("malformed payload: " + text[:40])
    return ctx.mpf(text)
