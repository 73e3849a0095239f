"""Peer presence routes: the peer channel WebSocket and the online listing."""

from fastapi import APIRouter, Depends, WebSocket

from common.constants import PEER_CHANNEL_PATH
from hub.auth import get_current_user
from hub.dependencies import get_channel_registry, get_peer_registry
from hub.peers.channel import PeerChannelHandler
from hub.peers.peer_registry import PeerRegistry
from hub.schemas.common import error_responses
from hub.schemas.peers import ListPeersResponse, PeerResponse

router = APIRouter(tags=["Peers"], responses=error_responses(401))


@router.get("/peers", response_model=ListPeersResponse)
async def list_peers(
    current_user: str = Depends(get_current_user),
    registry: PeerRegistry = Depends(get_peer_registry),
):
    """
    List peers that currently hold an open, registered channel.

    Raises:
        - 401: Invalid or missing API Key
    """
    return ListPeersResponse(peers=[PeerResponse(**peer) for peer in registry.get_all_peers()])


@router.websocket(PEER_CHANNEL_PATH)
async def peer_channel(websocket: WebSocket, registry: PeerRegistry = Depends(get_channel_registry)):
    await PeerChannelHandler(registry).run(websocket)
