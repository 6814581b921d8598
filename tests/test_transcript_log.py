"""Tests for the ordered fire-and-forget transcript write path."""

import pytest

from interview_realtime.adapters.store import MemoryTranscriptStore
from interview_realtime.core.interfaces import EventType
from interview_realtime.core.transcript_log import TranscriptLog


class FlakyStore(MemoryTranscriptStore):
    """Fails the first append, then behaves."""

    def __init__(self):
        super().__init__()
        self.failures = 1

    async def append(self, session_id, event_type, payload):
        if self.failures:
            self.failures -= 1
            raise OSError("disk full")
        return await super().append(session_id, event_type, payload)


@pytest.mark.asyncio
async def test_recorded_events_land_in_order():
    log = TranscriptLog(MemoryTranscriptStore())
    await log.start("s1")

    for index in range(20):
        log.record("s1", EventType.INTERIM_TRANSCRIPT, text=str(index), provider="fake")
    log.record("s1", EventType.FINAL_TRANSCRIPT, text="done", provider="fake")
    log.record_end("s1")
    await log.flush()

    session = await log.get("s1")
    assert [event.payload["text"] for event in session.events] == [str(i) for i in range(20)] + ["done"]
    assert session.ended_at is not None
    timestamps = [event.ts for event in session.events]
    assert timestamps == sorted(timestamps)
    assert log.pending_writes == 0
    await log.close()


@pytest.mark.asyncio
async def test_record_without_session_is_a_no_op():
    log = TranscriptLog(MemoryTranscriptStore())

    log.record(None, EventType.QUESTION_SUBMITTED, text="anonymous")
    log.record("", EventType.QUESTION_SUBMITTED, text="anonymous")
    await log.flush()

    assert await log.list() == []


@pytest.mark.asyncio
async def test_failed_write_does_not_stop_later_writes():
    log = TranscriptLog(FlakyStore())
    await log.start("s1")

    log.record("s1", EventType.QUESTION_SUBMITTED, text="lost")
    log.record("s1", EventType.REPLY_GENERATED, text="kept", provider="fake")
    await log.flush()

    session = await log.get("s1")
    assert [event.type for event in session.events] == [EventType.REPLY_GENERATED]
    await log.close()


@pytest.mark.asyncio
async def test_direct_append_returns_event():
    log = TranscriptLog(MemoryTranscriptStore())

    event = await log.append("s1", EventType.ERROR, stage="stt", error="timeout")

    assert event.type == EventType.ERROR
    assert event.to_dict()["stage"] == "stt"
    assert event.to_dict()["type"] == "error"
    summaries = await log.list()
    assert [summary.id for summary in summaries] == ["s1"]
    assert summaries[0].event_count == 1
