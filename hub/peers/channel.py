"""Server side of the peer channel WebSocket."""

from fastapi import WebSocket

from common.logging_config import get_logger
from common.protocol import ProtocolError, RegisterPeerMessage, decode_message
from hub.peers.peer_registry import PeerConnection, PeerRegistry

logger = get_logger(__name__)


class PeerChannelHandler:
    """
    Runs one peer channel from accept to close.

    Every frame is expected to be a ``register-peer`` message. Frames that
    do not decode are logged and skipped.
    """

    def __init__(self, registry: PeerRegistry):
        self.registry = registry

    async def handle_message(self, connection: PeerConnection, payload) -> None:
        try:
            message = decode_message(payload)
        except ProtocolError as e:
            logger.warning(f"Ignoring malformed peer message [connection_id={connection.connection_id}]: {e}")
            return

        if isinstance(message, RegisterPeerMessage):
            await self.registry.register(connection, message.peer_id)

    async def run(self, websocket: WebSocket) -> None:
        await websocket.accept()
        connection = PeerConnection(websocket=websocket)
        await self.registry.on_connect(connection)

        try:
            while True:
                frame = await websocket.receive()
                if frame["type"] == "websocket.disconnect":
                    break
                payload = frame.get("text")
                if payload is None:
                    payload = frame.get("bytes")
                await self.handle_message(connection, payload)
        finally:
            await self.registry.on_close(connection)
