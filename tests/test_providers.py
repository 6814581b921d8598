"""
Tests for the hosted provider adapters, run against ``httpx.MockTransport``.
"""

import json

import httpx
import pytest

from interview_realtime.adapters.llm import EchoLLMEngine, OllamaLLMEngine, OpenAILLMEngine
from interview_realtime.adapters.providers import default_provider_registry
from interview_realtime.adapters.stt import DeepgramSTTEngine, WhisperSTTEngine
from interview_realtime.adapters.tts import ElevenLabsTTSEngine, OpenAITTSEngine
from interview_realtime.core.errors import ProviderConfigurationError, ProviderError
from interview_realtime.core.interfaces import Stage


class Recorder:
    """MockTransport handler that records requests and replays one response."""

    def __init__(self, response: httpx.Response):
        self.response = response
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.mark.asyncio
async def test_whisper_posts_multipart_and_parses_segments():
    recorder = Recorder(httpx.Response(200, json={
        "text": " Tell me about yourself. ",
        "language": "english",
        "segments": [{"text": " Tell me about yourself.", "start": 0.0, "end": 1.4}],
    }))
    engine = WhisperSTTEngine(api_key="sk-test", transport=recorder.transport)

    result = await engine.transcribe(b"\x1aE\xdf\xa3webm", mimetype="audio/webm;codecs=opus")

    request = recorder.requests[0]
    assert request.url.path == "/v1/audio/transcriptions"
    assert request.headers["Authorization"] == "Bearer sk-test"
    assert b'filename="audio.webm"' in request.content
    assert b"whisper-1" in request.content
    assert result.text == "Tell me about yourself."
    assert result.provider == "whisper"
    assert result.segments[0].end == 1.4


@pytest.mark.asyncio
async def test_whisper_without_key_is_a_configuration_error():
    engine = WhisperSTTEngine(api_key=None)

    with pytest.raises(ProviderConfigurationError) as exc_info:
        await engine.transcribe(b"audio")

    assert exc_info.value.stage == Stage.STT
    assert "OPENAI_API_KEY" in exc_info.value.message


@pytest.mark.asyncio
async def test_empty_audio_short_circuits_without_request():
    recorder = Recorder(httpx.Response(500))
    engine = WhisperSTTEngine(api_key="sk-test", transport=recorder.transport)

    result = await engine.transcribe(b"")

    assert result.text == ""
    assert recorder.requests == []


@pytest.mark.asyncio
async def test_deepgram_sends_raw_audio_with_token_auth():
    recorder = Recorder(httpx.Response(200, json={
        "results": {"channels": [{"alternatives": [{
            "transcript": "Why should we hire you?",
            "words": [{"word": "why", "punctuated_word": "Why", "start": 0.1, "end": 0.3, "confidence": 0.98}],
        }]}]},
    }))
    engine = DeepgramSTTEngine(api_key="dg-key", transport=recorder.transport)

    result = await engine.transcribe(b"raw-bytes", mimetype="audio/webm")

    request = recorder.requests[0]
    assert request.url.path == "/v1/listen"
    assert request.url.params["model"] == "nova-2"
    assert request.url.params["smart_format"] == "true"
    assert request.headers["Authorization"] == "Token dg-key"
    assert request.headers["Content-Type"] == "audio/webm"
    assert request.content == b"raw-bytes"
    assert result.text == "Why should we hire you?"
    assert result.segments[0].text == "Why"


@pytest.mark.asyncio
async def test_http_error_status_becomes_stage_tagged_error():
    recorder = Recorder(httpx.Response(429, text="rate limited"))
    engine = DeepgramSTTEngine(api_key="dg-key", transport=recorder.transport)

    with pytest.raises(ProviderError) as exc_info:
        await engine.transcribe(b"audio")

    assert exc_info.value.stage == Stage.STT
    assert exc_info.value.provider == "deepgram"
    assert "429" in exc_info.value.message


@pytest.mark.asyncio
async def test_transport_failure_becomes_provider_error():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    engine = OllamaLLMEngine(transport=httpx.MockTransport(refuse))

    with pytest.raises(ProviderError) as exc_info:
        await engine.generate("Question: hi")

    assert exc_info.value.stage == Stage.LLM
    assert "connection refused" in exc_info.value.message


@pytest.mark.asyncio
async def test_openai_chat_sends_system_and_user_turns():
    recorder = Recorder(httpx.Response(200, json={
        "model": "gpt-4o-mini",
        "choices": [{"message": {"role": "assistant", "content": "I would start by..."}}],
        "usage": {"total_tokens": 42},
    }))
    engine = OpenAILLMEngine(api_key="sk-test", transport=recorder.transport)

    result = await engine.generate("Question: why us?", system="Be concise", temperature=0.2)

    body = json.loads(recorder.requests[0].content)
    assert recorder.requests[0].url.path == "/v1/chat/completions"
    assert body["messages"] == [
        {"role": "system", "content": "Be concise"},
        {"role": "user", "content": "Question: why us?"},
    ]
    assert body["temperature"] == 0.2
    assert body["model"] == "gpt-4o-mini"
    assert result.text == "I would start by..."
    assert result.usage == {"total_tokens": 42}


@pytest.mark.asyncio
async def test_ollama_generate_is_non_streaming():
    recorder = Recorder(httpx.Response(200, json={"model": "llama3", "response": "Sure.", "eval_count": 7}))
    engine = OllamaLLMEngine(model="llama3", transport=recorder.transport)

    result = await engine.generate("Question: hello")

    body = json.loads(recorder.requests[0].content)
    assert recorder.requests[0].url.path == "/api/generate"
    assert body["stream"] is False
    assert body["model"] == "llama3"
    assert result.text == "Sure."
    assert result.usage == {"eval_count": 7}


@pytest.mark.asyncio
async def test_echo_generator_returns_the_question():
    engine = EchoLLMEngine()

    result = await engine.generate("Answer well.\n\nQuestion: What motivates you?")

    assert result.text == "You asked: What motivates you?"
    assert result.provider == "echo"


@pytest.mark.asyncio
async def test_openai_speech_returns_audio_with_mime():
    recorder = Recorder(httpx.Response(200, content=b"OggS..."))
    engine = OpenAITTSEngine(api_key="sk-test", format="opus", transport=recorder.transport)

    result = await engine.synthesize("Thank you for your time.")

    body = json.loads(recorder.requests[0].content)
    assert recorder.requests[0].url.path == "/v1/audio/speech"
    assert body == {"model": "tts-1", "input": "Thank you for your time.", "voice": "alloy", "response_format": "opus"}
    assert result.audio == b"OggS..."
    assert result.mime_type == "audio/ogg"


@pytest.mark.asyncio
async def test_elevenlabs_posts_to_voice_endpoint():
    recorder = Recorder(httpx.Response(200, content=b"ID3mp3"))
    engine = ElevenLabsTTSEngine(api_key="xi-key", voice="voice-123", transport=recorder.transport)

    result = await engine.synthesize("Great question.")

    request = recorder.requests[0]
    body = json.loads(request.content)
    assert request.url.path == "/v1/text-to-speech/voice-123"
    assert request.headers["xi-api-key"] == "xi-key"
    assert body["voice_settings"] == {"stability": 0.5, "similarity_boost": 0.75}
    assert result.mime_type == "audio/mpeg"
    assert result.size_bytes == len(b"ID3mp3")


@pytest.mark.asyncio
async def test_elevenlabs_requires_key_and_voice():
    with pytest.raises(ProviderConfigurationError) as exc_info:
        await ElevenLabsTTSEngine(api_key=None, voice="v").synthesize("hi")
    assert exc_info.value.stage == Stage.TTS
    assert exc_info.value.to_dict()["stage"] == "tts"

    with pytest.raises(ProviderConfigurationError):
        await ElevenLabsTTSEngine(api_key="xi-key", voice=None).synthesize("hi")


@pytest.mark.asyncio
async def test_synthesis_of_empty_text_is_rejected():
    with pytest.raises(ProviderError):
        await OpenAITTSEngine(api_key="sk-test").synthesize("   ")


def test_registry_resolves_bundled_providers():
    registry = default_provider_registry()

    assert registry.available("stt") == ["deepgram", "whisper"]
    assert registry.available("llm") == ["echo", "ollama", "openai"]
    assert registry.available("tts") == ["elevenlabs", "openai"]
    assert isinstance(registry.create("stt", "Whisper", {}), WhisperSTTEngine)
    assert isinstance(registry.create("tts", "openai", {"voice": "nova"}), OpenAITTSEngine)


def test_registry_rejects_unknown_provider_names():
    registry = default_provider_registry()

    with pytest.raises(ValueError) as exc_info:
        registry.create("llm", "gpt-neo", {})

    assert "Unknown LLM provider: gpt-neo" in str(exc_info.value)
    assert "echo, ollama, openai" in str(exc_info.value)
