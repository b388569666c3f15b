# arena_server/models/protocol.py
"""Wire protocol: inbound command decoding and outbound message builders.

Every message in either direction is a JSON object of the form
``{"type": <string>, "data": <payload>}``. Inbound payloads are decoded
permissively: a numeric field that is missing or unusable becomes ``0.0``
and an unrecognized ``type`` decodes to :class:`UnknownCommand`. An
envelope that is not a JSON object, or whose ``type`` is not a string, is
rejected.
"""

import json
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union


class ProtocolError(ValueError):
    """Raised when an inbound message is not a readable envelope."""


@dataclass(frozen=True)
class MoveCommand:
    """Absolute target position for the sender's avatar."""

    x: float
    y: float


@dataclass(frozen=True)
class ShootCommand:
    """Fire a projectile in the given direction (radians)."""

    angle: float


@dataclass(frozen=True)
class UnknownCommand:
    """Any command type the server does not handle."""

    type: Optional[str]


Command = Union[MoveCommand, ShootCommand, UnknownCommand]


def _number(data: Dict[str, Any], key: str) -> float:
    value = data.get(key)
    # bool is an int subclass but never a coordinate
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    value = float(value)
    if not math.isfinite(value):
        return 0.0
    return value


def decode_command(raw: Union[str, bytes]) -> Command:
    """Decode one inbound text or binary frame into a command."""
    try:
        envelope = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise ProtocolError(f"invalid JSON: {exc}") from exc

    if not isinstance(envelope, dict):
        raise ProtocolError("envelope must be a JSON object")

    message_type = envelope.get("type")
    if message_type is not None and not isinstance(message_type, str):
        raise ProtocolError("message type must be a string")
    data = envelope.get("data")
    if not isinstance(data, dict):
        data = {}

    if message_type == "move":
        return MoveCommand(x=_number(data, "x"), y=_number(data, "y"))
    if message_type == "shoot":
        return ShootCommand(angle=_number(data, "angle"))
    return UnknownCommand(type=message_type)


def welcome_message(player_id: str) -> Dict[str, Any]:
    return {"type": "welcome", "data": {"playerId": player_id}}


def encode_message(message: Dict[str, Any]) -> str:
    return json.dumps(message, separators=(",", ":"))
