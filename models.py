# File: models.py
# Pydantic models for API request and response bodies.

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Interview exchange ---

class QuestionRequest(BaseModel):
    """Body of POST /api/v1/interview/question. Either text or audio may be given."""

    model_config = ConfigDict(populate_by_name=True)

    question: Optional[str] = Field(None, description="Question text.")
    audio_base64: Optional[str] = Field(
        None,
        alias="audioBase64",
        description="Base64-encoded spoken question, transcribed before answering.",
    )
    mimetype: Optional[str] = Field(None, description="MIME type of the audio, e.g. audio/webm.")
    want_tts: bool = Field(False, alias="wantTTS", description="Synthesize the reply as speech.")


class SpeechPayload(BaseModel):
    audio_base64: str
    mime: str


class QuestionResponse(BaseModel):
    received: str = Field(..., description="Question text that was answered.")
    reply: str = Field(..., description="Generated reply.")
    providers: Dict[str, Optional[str]] = Field(
        default_factory=dict,
        description="Provider that served each stage (stt, llm, tts); null when a stage was skipped.",
    )
    tts: Optional[SpeechPayload] = None


class ProviderErrorResponse(BaseModel):
    error: str
    stage: str


class ErrorResponse(BaseModel):
    detail: str


# --- Sessions ---

class SessionSummaryResponse(BaseModel):
    id: str
    startedAt: Optional[str] = None
    endedAt: Optional[str] = None
    eventCount: int = 0


class SessionListResponse(BaseModel):
    sessions: List[SessionSummaryResponse]
    count: int


class SessionDetailResponse(BaseModel):
    id: str
    startedAt: Optional[str] = None
    endedAt: Optional[str] = None
    events: List[Dict[str, Any]] = Field(default_factory=list)


class DeleteSessionResponse(BaseModel):
    ok: bool = True
    id: str


class PruneResponse(BaseModel):
    ok: bool = True
    deleted: int
    max: int


# --- Provider evaluation ---

class EvalSTTRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    audio_base64: str = Field(..., alias="audioBase64", min_length=1)
    mimetype: Optional[str] = None
    language: Optional[str] = None


class EvalSTTResponse(BaseModel):
    provider: str
    model: Optional[str] = None
    text: str
    segments: List[Dict[str, Any]] = Field(default_factory=list)


class EvalLLMRequest(BaseModel):
    prompt: str = Field(..., min_length=1)
    model: Optional[str] = None
    temperature: Optional[float] = Field(None, ge=0.0, le=2.0)
    system: Optional[str] = None


class EvalLLMResponse(BaseModel):
    provider: str
    model: Optional[str] = None
    text: str
    usage: Dict[str, Any] = Field(default_factory=dict)


class EvalTTSRequest(BaseModel):
    text: str = Field(..., min_length=1)
    model: Optional[str] = None
    voice: Optional[str] = None
    format: Optional[str] = None


class EvalTTSResponse(BaseModel):
    provider: str
    model: Optional[str] = None
    voice: Optional[str] = None
    audio_base64: str
    mime: str
