# File: routers/core/interview.py
# Stateless interview question/answer endpoints.

import base64
import binascii
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from fastapi.responses import JSONResponse

from interview_realtime import InterviewEngine, ProviderError
from interview_realtime.core.models import utc_now
from models import ErrorResponse, ProviderErrorResponse, QuestionRequest, QuestionResponse
from routers.dependencies import get_engine, require_api_key

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/interview",
    tags=["Interview"],
    dependencies=[Depends(require_api_key)],
)


@router.get("")
async def interview_info():
    return {
        "service": "interview-practice-server",
        "route": "/api/v1/interview",
        "endpoints": [
            "GET /api/v1/interview",
            "GET /api/v1/interview/health",
            "POST /api/v1/interview/question",
        ],
    }


@router.get("/health")
async def interview_health():
    return {"status": "ok", "module": "interview", "timestamp": utc_now().isoformat()}


@router.post(
    "/question",
    response_model=QuestionResponse,
    summary="Answer an interview question, optionally transcribing and speaking",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid audio payload."},
        502: {"model": ProviderErrorResponse, "description": "A provider stage failed."},
    },
)
async def submit_question(
    body: QuestionRequest,
    x_session_id: Optional[str] = Header(None, description="Transcript session to record into."),
    session_id: Optional[str] = Query(None, description="Alternative to the X-Session-Id header."),
    engine: InterviewEngine = Depends(get_engine),
):
    """
    Runs one question/answer exchange. Without a session id the exchange is
    still answered, it is just not recorded.
    """
    audio = None
    if body.audio_base64:
        try:
            audio = base64.b64decode(body.audio_base64, validate=True)
        except (binascii.Error, ValueError):
            raise HTTPException(status_code=400, detail="audio_base64 is not valid base64")

    try:
        result = await engine.ask_question(
            x_session_id or session_id,
            text=body.question,
            audio=audio,
            want_speech=body.want_tts,
            source="rest",
            mimetype=body.mimetype,
        )
    except ProviderError as e:
        return JSONResponse(status_code=502, content=e.to_dict())

    return result.to_dict()
