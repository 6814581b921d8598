# File: routers/core/eval.py
# Provider evaluation endpoints: exercise one capability with explicit options.

import base64
import binascii
import dataclasses
import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from interview_realtime import InterviewEngine, ProviderError
from models import (
    EvalLLMRequest, EvalLLMResponse, EvalSTTRequest, EvalSTTResponse, EvalTTSRequest,
    EvalTTSResponse, ProviderErrorResponse
)
from routers.dependencies import get_engine, require_api_key

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/eval",
    tags=["Provider Evaluation"],
    dependencies=[Depends(require_api_key)],
)

_PROVIDER_ERROR = {502: {"model": ProviderErrorResponse, "description": "The provider call failed."}}


@router.get("")
async def eval_info(engine: InterviewEngine = Depends(get_engine)):
    status = engine.get_status()
    return {
        "route": "/api/v1/eval",
        "providers": {"stt": status["stt"], "llm": status["llm"], "tts": status["tts"]},
        "endpoints": [
            "GET /api/v1/eval",
            "POST /api/v1/eval/stt",
            "POST /api/v1/eval/llm",
            "POST /api/v1/eval/tts",
        ],
    }


@router.post("/stt", response_model=EvalSTTResponse, responses=_PROVIDER_ERROR)
async def eval_stt(body: EvalSTTRequest, engine: InterviewEngine = Depends(get_engine)):
    """Transcribe a single audio blob with the configured STT provider."""
    try:
        audio = base64.b64decode(body.audio_base64, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail="audioBase64 is not valid base64")

    try:
        result = await engine.aggregator.single_shot(audio, language=body.language, mimetype=body.mimetype)
    except ProviderError as e:
        logger.warning(f"Eval STT failed: {e.message}")
        return JSONResponse(status_code=502, content=e.to_dict())

    return {
        "provider": result.provider,
        "model": getattr(engine.stt_engine, "model", None),
        "text": result.text,
        "segments": [dataclasses.asdict(segment) for segment in result.segments],
    }


@router.post("/llm", response_model=EvalLLMResponse, responses=_PROVIDER_ERROR)
async def eval_llm(body: EvalLLMRequest, engine: InterviewEngine = Depends(get_engine)):
    """Generate text for a raw prompt, without the interview wrapper."""
    try:
        result = await engine.llm_engine.generate(
            body.prompt, model=body.model, temperature=body.temperature, system=body.system
        )
    except ProviderError as e:
        logger.warning(f"Eval LLM failed: {e.message}")
        return JSONResponse(status_code=502, content=e.to_dict())

    return {"provider": result.provider, "model": result.model, "text": result.text, "usage": result.usage}


@router.post("/tts", response_model=EvalTTSResponse, responses=_PROVIDER_ERROR)
async def eval_tts(body: EvalTTSRequest, engine: InterviewEngine = Depends(get_engine)):
    """Synthesize speech with the configured TTS provider."""
    tts_engine = engine.tts_engine
    if tts_engine is None:
        raise HTTPException(status_code=503, detail="No speech synthesis provider configured")

    try:
        result = await tts_engine.synthesize(body.text, voice=body.voice, model=body.model, format=body.format)
    except ProviderError as e:
        logger.warning(f"Eval TTS failed: {e.message}")
        return JSONResponse(status_code=502, content=e.to_dict())

    return {
        "provider": result.provider,
        "model": body.model or getattr(tts_engine, "model", None),
        "voice": body.voice or getattr(tts_engine, "voice", None),
        "audio_base64": base64.b64encode(result.audio).decode("ascii"),
        "mime": result.mime_type,
    }
