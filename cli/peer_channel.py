"""Client side of the peer channel: keeps this machine listed as online."""

import asyncio
from typing import Optional

import aiohttp

from common.logging_config import get_logger
from common.protocol import RegisterPeerMessage

logger = get_logger(__name__)

HEARTBEAT_SECONDS = 30


async def hold_peer_channel(
    channel_url: str,
    peer_id: str,
    session: Optional[aiohttp.ClientSession] = None,
) -> str:
    """
    Open the peer channel, register ``peer_id`` and hold it until the hub closes it.

    Args:
        channel_url: ws:// URL of the hub's peer channel
        peer_id: Identifier other users see for this machine
        session: Optional aiohttp session (a private one is created otherwise)

    Returns:
        Why the channel ended
    """
    owns_session = session is None
    if owns_session:
        session = aiohttp.ClientSession()

    try:
        async with session.ws_connect(channel_url, heartbeat=HEARTBEAT_SECONDS) as ws:
            await ws.send_str(RegisterPeerMessage(peer_id=peer_id).to_json())
            logger.info(f"Registered as peer '{peer_id}' on {channel_url}")

            async for msg in ws:
                if msg.type == aiohttp.WSMsgType.ERROR:
                    logger.warning(f"Peer channel error: {ws.exception()}")
                    return f"Peer channel error: {ws.exception()}"
                logger.debug(f"Ignoring peer channel frame of type {msg.type}")

            return "Hub closed the peer channel."
    finally:
        if owns_session:
            await session.close()


def stay_online(channel_url: str, peer_id: str) -> str:
    """
    Blocking wrapper used by the REPL. Ctrl-C ends the session cleanly.
    """
    print(f"Online as '{peer_id}'. Press Ctrl-C to go offline.")
    try:
        reason = asyncio.run(hold_peer_channel(channel_url, peer_id))
    except KeyboardInterrupt:
        return f"Peer '{peer_id}' is now offline."
    except aiohttp.ClientError as e:
        logger.error(f"Could not open peer channel {channel_url}: {e}")
        return f"Error: Cannot open peer channel: {e}"
    return f"{reason} Peer '{peer_id}' is now offline."
