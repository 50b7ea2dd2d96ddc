from dataclasses import dataclass
from enum import Enum
import json
import string
from typing import Any, Dict, Iterator


# -----------------------------
# Exceptions (domain errors)
# -----------------------------
class PeerError(Exception):
    """Base error for peer communication"""


class PeerProtocolError(PeerError):
    """Peer sent something that is not a valid message"""


class PeerNotConnected(PeerError):
    """No peer is currently connected"""


# -----------------------------
# Message model
# -----------------------------
class PeerMessageType(Enum):
    PROTOCOL_ERROR = "protocol_error"
    INPUT_COMMAND_RECEIVED = "input_command_received"
    INPUT_COMMAND_REPLACEMENT = "input_command_replacement"
    GENERAL_OUTPUT = "general_output"
    ERROR_OUTPUT = "error_output"
    USER_EXITED = "user_exited"


# types a peer is allowed to send to us
INBOUND_TYPES = {
    PeerMessageType.PROTOCOL_ERROR,
    PeerMessageType.INPUT_COMMAND_REPLACEMENT,
    PeerMessageType.GENERAL_OUTPUT,
    PeerMessageType.ERROR_OUTPUT,
}


@dataclass(frozen=True)
class PeerMessage:
    type: PeerMessageType
    message: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"type": self.type.value, "message": self.message}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    @classmethod
    def from_dict(cls, obj: Any) -> "PeerMessage":
        if not isinstance(obj, dict):
            raise PeerProtocolError("Unexpected message format (expected object)")

        type_name = obj.get("type")
        if type_name is None:
            raise PeerProtocolError("Missing type in peer message")

        try:
            message_type = PeerMessageType(type_name)
        except ValueError:
            raise PeerProtocolError(f"Invalid type ({type_name}) in peer message") from None

        message = obj.get("message", "")
        if not isinstance(message, str):
            raise PeerProtocolError("Peer message body must be a string")

        return cls(type=message_type, message=message)


# -----------------------------
# Stream decoding
# -----------------------------
class JSONStreamDecoder:
    """
    Incremental decoder for a stream of concatenated JSON values.
    Values may be separated by whitespace/newlines or not at all.
    """

    def __init__(self):
        self._decoder = json.JSONDecoder()
        self._pending = ""

    @property
    def pending(self) -> str:
        return self._pending

    def feed(self, data: str) -> Iterator[Any]:
        """Buffer data and yield every complete JSON value decoded so far"""
        self._pending += data

        while True:
            text = self._pending.lstrip()
            if not text:
                self._pending = ""
                break

            try:
                value, end = self._decoder.raw_decode(text)
            except json.JSONDecodeError as e:
                if _is_incomplete(text, e):
                    self._pending = text
                    break

                self._pending = ""
                raise PeerProtocolError(f"Error decoding incoming JSON: {e.msg}") from e

            self._pending = text[end:]
            yield value


def _is_incomplete(text: str, err: json.JSONDecodeError) -> bool:
    # errors at the very end of the buffer mean more data is still coming
    if err.pos >= len(text):
        return True

    if err.msg.startswith("Unterminated string"):
        return True

    tail = text[err.pos:]

    # a \uXXXX escape cut off before its four hex digits
    if err.msg.startswith("Invalid \\uXXXX escape"):
        digits = tail.lstrip("\\")
        if digits.startswith("u") and len(digits) <= 5:
            return all(c in string.hexdigits for c in digits[1:])

    return any(literal.startswith(tail) for literal in ("true", "false", "null"))
