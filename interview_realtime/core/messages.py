"""Server-to-client message builders shared by both transports."""

import base64
from typing import Any, Dict, Optional

from .interfaces import Stage, SynthesisResult


def ready_message(connection_id: str, session_id: str) -> Dict[str, Any]:
    return {"type": "ready", "connection_id": connection_id, "session_id": session_id}


def transcript_message(text: str, provider: str, final: bool) -> Dict[str, Any]:
    return {
        "type": "interview:stt",
        "text": text,
        "provider": provider,
        "interim": not final,
        "final": final,
    }


def speech_payload(speech: Optional[SynthesisResult]) -> Optional[Dict[str, str]]:
    """Encode synthesized audio for JSON transport."""
    if speech is None:
        return None
    return {
        "audio_base64": base64.b64encode(speech.audio).decode("ascii"),
        "mime": speech.mime_type,
    }


def reply_message(text: str, provider: str, speech: Optional[SynthesisResult] = None) -> Dict[str, Any]:
    return {
        "type": "interview:reply",
        "text": text,
        "provider": provider,
        "tts": speech_payload(speech),
    }


def error_message(stage: Stage, error: str) -> Dict[str, Any]:
    return {"type": "interview:error", "stage": Stage(stage).value, "error": error}
