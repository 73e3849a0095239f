"""Peer channel message definitions (JSON over WebSocket)."""

from dataclasses import dataclass
from typing import Any, Dict
import json

REGISTER_PEER = "register-peer"


class ProtocolError(ValueError):
    """Raised when a peer channel message cannot be decoded."""
    pass


@dataclass(frozen=True)
class RegisterPeerMessage:
    """Binds a logical peer identifier to the sending channel."""
    peer_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": REGISTER_PEER, "peerId": self.peer_id}

    def to_json(self) -> str:
        """Serialize to a JSON text frame."""
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, obj: Dict[str, Any]) -> 'RegisterPeerMessage':
        peer_id = obj.get("peerId")
        if not isinstance(peer_id, str) or not peer_id.strip():
            raise ProtocolError("register-peer requires a non-empty 'peerId'")
        return cls(peer_id=peer_id)


def decode_message(payload: Any) -> RegisterPeerMessage:
    """
    Decode one peer channel message.

    Args:
        payload: A JSON text frame or an already-parsed JSON object

    Returns:
        The decoded message

    Raises:
        ProtocolError: If the payload is not a known, well-formed message
    """
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except ValueError as e:
            raise ProtocolError(f"Invalid JSON frame: {e}")

    if not isinstance(payload, dict):
        raise ProtocolError("Message must be a JSON object")

    message_type = payload.get("type")
    if message_type == REGISTER_PEER:
        return RegisterPeerMessage.from_dict(payload)

    raise ProtocolError(f"Unknown message type: {message_type!r}")
