"""Peer presence tracking."""

from hub.peers.channel import PeerChannelHandler
from hub.peers.peer_registry import PeerConnection, PeerRegistry

__all__ = [
    "PeerChannelHandler",
    "PeerConnection",
    "PeerRegistry",
]
