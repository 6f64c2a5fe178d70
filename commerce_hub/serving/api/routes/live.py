"""
Live Channel

WebSocket endpoint pushing catalog mutation events to connected clients:

    {"event": "products", "data": {"type": "create", "product": {...}}}
    {"event": "categories", "data": {"type": "delete", "category": {"id": ...}}}

Each client receives events in publication order. Messages sent by clients
are ignored.
"""

import asyncio

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
import structlog

from commerce_hub.broadcast import Subscription
from commerce_hub.serving.api.dependencies import get_services

logger = structlog.get_logger(__name__)

router = APIRouter()


async def _forward(websocket: WebSocket, subscription: Subscription) -> None:
    try:
        async for event in subscription:
            await websocket.send_json(event.to_message())
    except WebSocketDisconnect:
        logger.debug("Live client gone while sending")


async def _stop_forwarding(forwarder: "asyncio.Task[None]") -> None:
    """Cancel the forwarder; a send that already failed is logged, not raised."""
    forwarder.cancel()
    try:
        await forwarder
    except asyncio.CancelledError:
        pass
    except Exception as e:
        logger.warning(
            "Live forwarding stopped on error",
            error=str(e),
            error_type=type(e).__name__,
        )


@router.websocket("/live")
async def live(websocket: WebSocket) -> None:
    services = get_services(websocket)

    # Subscribe before accepting so nothing published after the handshake is missed
    async with services.hub.subscribe() as subscription:
        await websocket.accept()
        logger.info("Live client connected", subscribers=services.hub.subscriber_count)

        forwarder = asyncio.create_task(_forward(websocket, subscription))
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
        finally:
            await _stop_forwarding(forwarder)
            logger.info("Live client disconnected", dropped=subscription.dropped)
