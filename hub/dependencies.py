"""FastAPI dependencies resolving the per-process hub components from app.state."""

from fastapi import Request, WebSocket

from hub.peers.peer_registry import PeerRegistry
from hub.services.transfer_service import TransferService


def get_transfer_service(request: Request) -> TransferService:
    return request.app.state.transfer_service


def get_peer_registry(request: Request) -> PeerRegistry:
    return request.app.state.peer_registry


def get_channel_registry(websocket: WebSocket) -> PeerRegistry:
    return websocket.app.state.peer_registry
