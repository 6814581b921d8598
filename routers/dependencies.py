# File: routers/dependencies.py
# Shared FastAPI dependencies: engine access and optional API key auth.

import logging
from typing import Optional

from fastapi import HTTPException, Request, WebSocket

from interview_realtime import InterviewEngine

logger = logging.getLogger(__name__)


def get_engine(request: Request) -> InterviewEngine:
    """Dependency returning the application's interview engine."""
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="Interview engine not initialized")
    return engine


def _matches(provided: Optional[str], required: str) -> bool:
    return bool(provided) and provided == required


def require_api_key(request: Request) -> None:
    """
    Enforce the configured API key, if any.

    Accepted from ``X-API-Key``, ``Authorization: Bearer <key>`` or the
    ``apiKey`` query parameter (for clients that cannot set headers).
    """
    required = getattr(request.app.state, "api_key", None)
    if not required:
        return

    auth = request.headers.get("authorization") or ""
    bearer = auth[7:] if auth.lower().startswith("bearer ") else None
    provided = request.headers.get("x-api-key") or bearer or request.query_params.get("apiKey")
    if not _matches(provided, required):
        logger.warning(f"Rejected unauthenticated request to {request.url.path}")
        raise HTTPException(status_code=401, detail="Unauthorized")


def websocket_authorized(websocket: WebSocket) -> bool:
    """API key check for WebSocket handshakes (query ``api_key``/``apiKey`` or ``X-API-Key``)."""
    required = getattr(websocket.app.state, "api_key", None)
    if not required:
        return True

    provided = (
        websocket.query_params.get("api_key")
        or websocket.query_params.get("apiKey")
        or websocket.headers.get("x-api-key")
    )
    return _matches(provided, required)
