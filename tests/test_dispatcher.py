"""
Tests for the question/answer exchange shared by the REST and WebSocket
transports.
"""

import base64

import pytest

from interview_realtime import PLACEHOLDER_QUESTION, ProviderError
from interview_realtime.core.interfaces import EventType, Stage
from interview_realtime.plugins.middleware import TimingMiddleware

from .fakes import CollectingChannel, FakeLLM, FakeSTT, FakeTTS, build_engine


async def session_events(engine, session_id):
    await engine.log.flush()
    session = await engine.log.get(session_id)
    return [(event.type, event.payload) for event in session.events]


@pytest.mark.asyncio
async def test_text_question_without_speech_records_question_and_reply():
    llm = FakeLLM()
    engine = build_engine(llm=llm)

    result = await engine.ask_question("s1", text="What is your greatest strength?")

    assert result.received_text == "What is your greatest strength?"
    assert result.reply_text == "Here is how I would answer: What is your greatest strength?"
    assert result.providers == {"stt": None, "llm": "fake-llm", "tts": None}
    assert result.speech is None
    assert result.to_dict()["tts"] is None

    events = await session_events(engine, "s1")
    assert [event_type for event_type, _ in events] == [
        EventType.QUESTION_SUBMITTED,
        EventType.REPLY_GENERATED,
    ]
    assert events[0][1]["text"] == "What is your greatest strength?"
    assert events[1][1]["provider"] == "fake-llm"
    await engine.shutdown()


@pytest.mark.asyncio
async def test_empty_question_uses_placeholder_and_skips_logging_without_session():
    llm = FakeLLM()
    engine = build_engine(llm=llm)

    result = await engine.ask_question(None, text="   ")

    assert result.received_text == PLACEHOLDER_QUESTION
    assert llm.prompts[-1].endswith(f"Question: {PLACEHOLDER_QUESTION}")
    assert result.reply_text
    await engine.log.flush()
    assert await engine.log.list() == []
    await engine.shutdown()


@pytest.mark.asyncio
async def test_generation_failure_logs_error_and_raises_with_stage():
    engine = build_engine(llm=FakeLLM(fail=True))
    channel = CollectingChannel()

    with pytest.raises(ProviderError) as exc_info:
        await engine.ask_question("s5", text="Describe a conflict", channel=channel)

    assert exc_info.value.stage == Stage.LLM
    assert exc_info.value.to_dict() == {"stage": "llm", "error": "generation quota exceeded"}

    events = await session_events(engine, "s5")
    assert [event_type for event_type, _ in events] == [EventType.QUESTION_SUBMITTED, EventType.ERROR]
    assert events[1][1]["stage"] == "llm"
    assert events[1][1]["error"] == "generation quota exceeded"

    assert channel.of_type("interview:reply") == []
    errors = channel.of_type("interview:error")
    assert errors == [{"type": "interview:error", "stage": "llm", "error": "generation quota exceeded"}]
    await engine.shutdown()


@pytest.mark.asyncio
async def test_spoken_question_is_transcribed_before_generation():
    stt = FakeSTT()
    engine = build_engine(stt=stt)
    channel = CollectingChannel()

    result = await engine.ask_question("s2", audio=b"Why do you want this job?", channel=channel)

    assert stt.calls == [b"Why do you want this job?"]
    assert result.received_text == "Why do you want this job?"
    assert result.providers["stt"] == "fake-stt"
    assert [m["type"] for m in channel.messages] == ["interview:stt", "interview:reply"]
    assert channel.messages[0]["final"] is True

    events = await session_events(engine, "s2")
    assert [event_type for event_type, _ in events] == [
        EventType.SINGLE_SHOT_TRANSCRIPT,
        EventType.QUESTION_SUBMITTED,
        EventType.REPLY_GENERATED,
    ]
    await engine.shutdown()


@pytest.mark.asyncio
async def test_transcription_failure_stops_before_generation():
    llm = FakeLLM()
    engine = build_engine(stt=FakeSTT(fail=True), llm=llm)

    with pytest.raises(ProviderError) as exc_info:
        await engine.ask_question("s3", audio=b"muffled")

    assert exc_info.value.stage == Stage.STT
    assert llm.prompts == []
    events = await session_events(engine, "s3")
    assert [event_type for event_type, _ in events] == [EventType.ERROR]
    await engine.shutdown()


@pytest.mark.asyncio
async def test_speech_is_synthesized_and_encoded_on_request():
    tts = FakeTTS()
    engine = build_engine(tts=tts)
    channel = CollectingChannel()

    result = await engine.ask_question("s4", text="Tell me about a failure", want_speech=True, channel=channel)

    assert tts.texts == [result.reply_text]
    payload = result.to_dict()["tts"]
    assert payload["mime"] == "audio/mpeg"
    assert base64.b64decode(payload["audio_base64"]) == b"ID3-fake-mp3"
    assert result.providers["tts"] == "fake-tts"
    assert channel.of_type("interview:reply")[0]["tts"] == payload

    events = await session_events(engine, "s4")
    assert events[-1][0] == EventType.SPEECH_SYNTHESIZED
    assert events[-1][1] == {"provider": "fake-tts", "mime": "audio/mpeg", "bytes": len(b"ID3-fake-mp3")}
    await engine.shutdown()


@pytest.mark.asyncio
async def test_synthesis_failure_keeps_reply_in_log():
    engine = build_engine(tts=FakeTTS(fail=True))

    with pytest.raises(ProviderError) as exc_info:
        await engine.ask_question("s6", text="Where do you see yourself?", want_speech=True)

    assert exc_info.value.stage == Stage.TTS
    events = await session_events(engine, "s6")
    assert [event_type for event_type, _ in events] == [
        EventType.QUESTION_SUBMITTED,
        EventType.REPLY_GENERATED,
        EventType.ERROR,
    ]
    await engine.shutdown()


@pytest.mark.asyncio
async def test_speech_without_synthesis_provider_is_a_tts_error():
    engine = build_engine(tts=False)

    with pytest.raises(ProviderError) as exc_info:
        await engine.ask_question("s7", text="Any questions for us?", want_speech=True)

    assert exc_info.value.stage == Stage.TTS
    await engine.shutdown()


@pytest.mark.asyncio
async def test_unexpected_provider_exception_is_wrapped():
    class BrokenLLM(FakeLLM):
        async def generate(self, prompt, **kwargs):
            raise RuntimeError("socket reset")

    engine = build_engine(llm=BrokenLLM())

    with pytest.raises(ProviderError) as exc_info:
        await engine.ask_question("s8", text="Hello")

    assert exc_info.value.stage == Stage.LLM
    assert exc_info.value.provider == "fake-llm"
    assert "socket reset" in exc_info.value.message
    await engine.shutdown()


@pytest.mark.asyncio
async def test_middleware_sees_stage_timings():
    timing = TimingMiddleware(log_timing=False)
    engine = build_engine()
    engine.add_middleware(timing)

    await engine.ask_question("s9", audio=b"clip", want_speech=True)

    stats = timing.get_statistics()
    assert stats["total_requests"] == 1
    assert set(stats["stages_average_ms"]) == {"stt", "llm", "tts"}
    assert all(value is not None for value in stats["stages_average_ms"].values())
    await engine.shutdown()


@pytest.mark.asyncio
async def test_pipeline_listeners_are_notified():
    engine = build_engine(llm=FakeLLM(fail=True))
    seen = []

    async def listener(event_name, context):
        seen.append((event_name, context.session_id))

    engine.pipeline.subscribe("exchange_start", listener)
    engine.pipeline.subscribe("exchange_error", listener)

    with pytest.raises(ProviderError):
        await engine.ask_question("s10", text="Hi")

    assert seen == [("exchange_start", "s10"), ("exchange_error", "s10")]
    assert engine.pipeline.active_exchanges == 0
    await engine.shutdown()
