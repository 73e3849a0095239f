"""Pydantic schemas for peer presence endpoints."""

from typing import List

from pydantic import BaseModel


class PeerResponse(BaseModel):
    """One online peer."""
    peer_id: str
    connection_id: str


class ListPeersResponse(BaseModel):
    """Response model for the online peer listing."""
    peers: List[PeerResponse]
