"""In-memory registry of online peers keyed by their logical peer id."""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from common.logging_config import get_logger
from hub.utils import generate_uuid

logger = get_logger(__name__)


@dataclass(eq=False)
class PeerConnection:
    """
    Handle for one live peer channel.

    Compared by identity: two handles are the same channel only if they are
    the same object.
    """
    websocket: Any = None
    connection_id: str = field(default_factory=generate_uuid)


class PeerRegistry:
    """
    Maps peer ids to the channel they most recently registered on.

    One instance lives on ``app.state`` for the lifetime of the hub process.
    """

    def __init__(self):
        self.peers: Dict[str, PeerConnection] = {}
        self.lock = asyncio.Lock()

    async def on_connect(self, connection: PeerConnection) -> None:
        logger.info(f"Peer channel opened [connection_id={connection.connection_id}]")

    async def register(self, connection: PeerConnection, peer_id: str) -> Optional[PeerConnection]:
        """
        Bind ``peer_id`` to ``connection``. The last registration wins.

        Returns:
            The handle that was replaced, if any
        """
        async with self.lock:
            previous = self.peers.get(peer_id)
            self.peers[peer_id] = connection

        if previous is not None and previous is not connection:
            logger.warning(
                f"Peer '{peer_id}' re-registered: [connection_id={previous.connection_id}] "
                f"replaced by [connection_id={connection.connection_id}]"
            )
        else:
            logger.info(f"Peer '{peer_id}' registered [connection_id={connection.connection_id}]")
        return previous

    async def on_close(self, connection: PeerConnection) -> Optional[str]:
        """
        Forget the first peer id bound to a closed channel.

        Returns:
            The peer id that was removed, or None if the channel never registered
        """
        async with self.lock:
            removed = None
            for peer_id, handle in self.peers.items():
                if handle is connection:
                    removed = peer_id
                    break
            if removed is not None:
                del self.peers[removed]

        if removed is None:
            logger.info(f"Peer channel closed without registration [connection_id={connection.connection_id}]")
        else:
            logger.info(f"Peer '{removed}' went offline [connection_id={connection.connection_id}]")
        return removed

    def lookup(self, peer_id: str) -> Optional[PeerConnection]:
        return self.peers.get(peer_id)

    def get_all_peers(self) -> List[Dict[str, str]]:
        return [
            {"peer_id": peer_id, "connection_id": handle.connection_id}
            for peer_id, handle in self.peers.items()
        ]

    async def clear(self) -> None:
        async with self.lock:
            count = len(self.peers)
            self.peers.clear()
        logger.info(f"Peer registry cleared ({count} peers)")

    def __len__(self) -> int:
        return len(self.peers)
