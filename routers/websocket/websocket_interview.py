# File: routers/websocket/websocket_interview.py
# Long-lived interview channel: streamed audio, questions and pushed results.

import logging
from typing import Optional

from fastapi import APIRouter, Query, WebSocket, status

from interview_realtime.adapters.websocket import FastAPIWebSocketAdapter
from routers.dependencies import websocket_authorized

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ws", tags=["WebSocket Interview"])


@router.websocket("/interview")
async def websocket_interview(
    websocket: WebSocket,
    session_id: Optional[str] = Query(None, description="Transcript session id; defaults to the connection id"),
):
    """
    Client -> server JSON messages: ``interview:audio_chunk`` (or raw binary
    frames), ``interview:audio_end``, ``interview:audio``, ``interview:question``
    and ``ping``. Server -> client: ``ready``, ``interview:stt``,
    ``interview:reply``, ``interview:error`` and ``pong``.
    """
    if not websocket_authorized(websocket):
        logger.warning("Rejected unauthenticated WebSocket connection")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    engine = getattr(websocket.app.state, "engine", None)
    if engine is None:
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
        return

    adapter = FastAPIWebSocketAdapter(websocket)
    logger.info(f"WebSocket interview connection: {adapter.get_client_info()}")
    await engine.handle_connection(adapter, session_id=session_id)
