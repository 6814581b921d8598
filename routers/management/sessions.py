# File: routers/management/sessions.py
# Transcript session query and retention endpoints.

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from interview_realtime import InterviewEngine
from models import (
    DeleteSessionResponse, ErrorResponse, PruneResponse, SessionDetailResponse, SessionListResponse
)
from routers.dependencies import get_engine, require_api_key

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/sessions",
    tags=["Sessions"],
    dependencies=[Depends(require_api_key)],
)


@router.get("", response_model=SessionListResponse)
async def list_sessions(engine: InterviewEngine = Depends(get_engine)):
    """List stored sessions, newest first."""
    await engine.log.flush()
    summaries = await engine.log.list()
    return {"sessions": [summary.to_dict() for summary in summaries], "count": len(summaries)}


@router.get("/{session_id}", response_model=SessionDetailResponse, responses={404: {"model": ErrorResponse}})
async def get_session(session_id: str, engine: InterviewEngine = Depends(get_engine)):
    """Full event log of one session."""
    await engine.log.flush()
    session = await engine.log.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Not found")
    return session.to_dict()


@router.delete("/{session_id}", response_model=DeleteSessionResponse, responses={404: {"model": ErrorResponse}})
async def delete_session(session_id: str, engine: InterviewEngine = Depends(get_engine)):
    await engine.log.flush()
    if not await engine.log.delete(session_id):
        raise HTTPException(status_code=404, detail="Not found")
    logger.info(f"Session deleted: {session_id}")
    return {"ok": True, "id": session_id}


@router.delete("", response_model=PruneResponse)
async def prune_sessions(
    max: Optional[int] = Query(None, ge=0, description="Sessions to keep; defaults to the configured limit."),
    engine: InterviewEngine = Depends(get_engine),
):
    """Delete the oldest sessions until at most ``max`` remain."""
    await engine.log.flush()
    limit = engine.retention.max_sessions if max is None else max
    deleted = await engine.retention.prune(limit)
    return {"ok": True, "deleted": deleted, "max": limit}
