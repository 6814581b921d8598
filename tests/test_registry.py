"""Tests for connection lifecycle and session binding."""

import asyncio

import pytest

from interview_realtime.adapters.store import MemoryTranscriptStore
from interview_realtime.core.aggregator import ChunkAggregator
from interview_realtime.core.errors import InvalidTransitionError
from interview_realtime.core.interfaces import ConnectionState, EventType
from interview_realtime.core.registry import Connection, SessionRegistry
from interview_realtime.core.transcript_log import TranscriptLog

from .fakes import DEBOUNCE_MS, CollectingChannel, FakeSTT, SlowStartStore, settle


def make_registry(stt=None, finalize_on_disconnect=False):
    store = MemoryTranscriptStore()
    log = TranscriptLog(store)
    aggregator = ChunkAggregator(stt or FakeSTT(), debounce_ms=DEBOUNCE_MS)
    registry = SessionRegistry(log, aggregator, finalize_on_disconnect=finalize_on_disconnect)
    return registry, log


def event_types(session):
    return [event.type for event in session.events]


def test_connection_rejects_transition_out_of_closed():
    connection = Connection("c1", "s1", CollectingChannel())
    connection.transition(ConnectionState.STREAMING)
    connection.transition(ConnectionState.OPEN)
    connection.transition(ConnectionState.CLOSED)

    with pytest.raises(InvalidTransitionError):
        connection.transition(ConnectionState.OPEN)
    with pytest.raises(InvalidTransitionError):
        connection.transition(ConnectionState.STREAMING)


@pytest.mark.asyncio
async def test_connect_starts_session_keyed_by_connection_id():
    registry, log = make_registry()
    channel = CollectingChannel()

    connection = await registry.connect("c1", channel)
    await log.flush()

    assert connection.session_id == "c1"
    assert connection.state == ConnectionState.OPEN
    session = await log.get("c1")
    assert session is not None
    assert session.ended_at is None
    assert registry.active_count == 1


@pytest.mark.asyncio
async def test_connect_uses_explicit_session_id_and_rejects_duplicates():
    registry, log = make_registry()

    connection = await registry.connect("c1", CollectingChannel(), session_id="interview-42")
    await log.flush()

    assert connection.session_id == "interview-42"
    assert await log.get("interview-42") is not None
    with pytest.raises(InvalidTransitionError):
        await registry.connect("c1", CollectingChannel())


@pytest.mark.asyncio
async def test_stream_then_finalize_cycles_state_and_records_final():
    registry, log = make_registry()
    channel = CollectingChannel()
    await registry.connect("c1", channel)

    registry.push_fragment("c1", b"why this role")
    assert registry.get("c1").state == ConnectionState.STREAMING

    await registry.finalize("c1")
    assert registry.get("c1").state == ConnectionState.OPEN

    finals = [m for m in channel.of_type("interview:stt") if m["final"]]
    assert len(finals) == 1
    assert finals[0]["text"] == "why this role"
    assert finals[0]["interim"] is False

    await log.flush()
    session = await log.get("c1")
    assert event_types(session) == [EventType.FINAL_TRANSCRIPT]
    assert session.events[0].payload["text"] == "why this role"


@pytest.mark.asyncio
async def test_interim_results_reach_channel_and_log():
    registry, log = make_registry()
    channel = CollectingChannel()
    await registry.connect("c1", channel)

    registry.push_fragment("c1", b"so far")
    await settle()

    interims = channel.of_type("interview:stt")
    assert len(interims) == 1
    assert interims[0]["interim"] is True
    await log.flush()
    assert event_types(await log.get("c1")) == [EventType.INTERIM_TRANSCRIPT]
    await registry.disconnect("c1")


@pytest.mark.asyncio
async def test_disconnect_discards_unflushed_audio_and_ends_session():
    stt = FakeSTT()
    registry, log = make_registry(stt=stt)
    await registry.connect("c1", CollectingChannel())

    registry.push_fragment("c1", b"half a sentence")
    connection = await registry.disconnect("c1")
    await settle()
    await log.flush()

    assert connection.state == ConnectionState.CLOSED
    assert stt.calls == []
    session = await log.get("c1")
    assert session.events == []
    assert session.ended_at is not None
    assert registry.get("c1") is None


@pytest.mark.asyncio
async def test_disconnect_is_idempotent():
    registry, log = make_registry()
    await registry.connect("c1", CollectingChannel())

    assert await registry.disconnect("c1") is not None
    assert await registry.disconnect("c1") is None
    assert await registry.disconnect("never-seen") is None


@pytest.mark.asyncio
async def test_finalize_on_disconnect_records_final_without_sending():
    registry, log = make_registry(finalize_on_disconnect=True)
    channel = CollectingChannel()
    await registry.connect("c1", channel)

    registry.push_fragment("c1", b"last words")
    await registry.disconnect("c1")
    await log.flush()

    assert channel.of_type("interview:stt") == []
    session = await log.get("c1")
    assert event_types(session) == [EventType.FINAL_TRANSCRIPT]
    assert session.events[0].payload["text"] == "last words"
    assert session.ended_at is not None


@pytest.mark.asyncio
async def test_in_flight_result_after_disconnect_is_logged_not_sent():
    stt = FakeSTT(delay=DEBOUNCE_MS / 1000.0 * 2)
    registry, log = make_registry(stt=stt)
    channel = CollectingChannel()
    await registry.connect("c1", channel)

    registry.push_fragment("c1", b"in flight")
    await asyncio.sleep(DEBOUNCE_MS / 1000.0 * 1.5)
    assert stt.in_flight == 1

    await registry.disconnect("c1")
    await settle(4)
    await log.flush()

    assert channel.of_type("interview:stt") == []
    session = await log.get("c1")
    assert EventType.INTERIM_TRANSCRIPT in event_types(session)


@pytest.mark.asyncio
async def test_push_after_disconnect_is_rejected():
    registry, log = make_registry()
    await registry.connect("c1", CollectingChannel())
    await registry.disconnect("c1")

    with pytest.raises(InvalidTransitionError):
        registry.push_fragment("c1", b"late")


@pytest.mark.asyncio
async def test_results_are_not_sent_to_a_dropped_transport():
    registry, log = make_registry()
    channel = CollectingChannel()
    await registry.connect("c1", channel)

    registry.push_fragment("c1", b"gone")
    channel.connected = False
    await registry.finalize("c1")
    await log.flush()

    assert channel.messages == []
    assert event_types(await log.get("c1")) == [EventType.FINAL_TRANSCRIPT]


@pytest.mark.asyncio
async def test_close_all_disconnects_everyone():
    registry, log = make_registry()
    for connection_id in ("a", "b", "c"):
        await registry.connect(connection_id, CollectingChannel())

    await registry.close_all()
    await log.flush()

    assert registry.active_count == 0
    for connection_id in ("a", "b", "c"):
        assert (await log.get(connection_id)).ended_at is not None


@pytest.mark.asyncio
async def test_fragments_after_end_of_capture_open_the_next_segment():
    registry, log = make_registry()
    channel = CollectingChannel()
    await registry.connect("c1", channel)

    registry.push_fragment("c1", b"first answer")
    pending = registry.end_capture("c1")
    assert registry.get("c1").state == ConnectionState.OPEN

    registry.push_fragment("c1", b"second")
    assert registry.get("c1").state == ConnectionState.STREAMING

    final = await pending
    assert final.text == "first answer"
    assert registry.aggregator.buffered_bytes("c1") == len(b"second")
    await registry.disconnect("c1")


@pytest.mark.asyncio
async def test_connect_does_not_wait_for_the_store():
    store = SlowStartStore(delay=0.5)
    log = TranscriptLog(store)
    registry = SessionRegistry(log, ChunkAggregator(FakeSTT(), debounce_ms=DEBOUNCE_MS))

    await asyncio.wait_for(registry.connect("c1", CollectingChannel()), timeout=0.1)
    log.record("c1", EventType.QUESTION_SUBMITTED, text="first")
    await log.flush()

    session = await log.get("c1")
    assert [event.payload["text"] for event in session.events] == ["first"]
    await registry.disconnect("c1")
