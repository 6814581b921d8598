"""Tests for count-based transcript retention."""

import pytest

from interview_realtime.adapters.store import MemoryTranscriptStore
from interview_realtime.core.retention import RetentionPolicy
from interview_realtime.core.transcript_log import TranscriptLog


async def seeded_log(count):
    log = TranscriptLog(MemoryTranscriptStore())
    for index in range(count):
        await log.start(f"s{index:03d}")
    return log


@pytest.mark.asyncio
async def test_prune_removes_oldest_session_over_the_limit():
    log = await seeded_log(501)
    retention = RetentionPolicy(log, max_sessions=500)

    deleted = await retention.prune()

    assert deleted == 1
    assert await log.get("s000") is None
    assert await log.get("s001") is not None
    assert len(await log.list()) == 500


@pytest.mark.asyncio
async def test_prune_at_or_under_limit_deletes_nothing():
    log = await seeded_log(3)
    retention = RetentionPolicy(log, max_sessions=3)

    assert await retention.prune() == 0
    assert await retention.prune(10) == 0
    assert len(await log.list()) == 3


@pytest.mark.asyncio
async def test_explicit_limit_overrides_configured_maximum():
    log = await seeded_log(5)
    retention = RetentionPolicy(log, max_sessions=500)

    assert await retention.prune(2) == 3
    assert sorted(summary.id for summary in await log.list()) == ["s003", "s004"]
    assert await retention.prune(0) == 2
    assert await log.list() == []


@pytest.mark.asyncio
async def test_negative_limits_are_rejected():
    log = await seeded_log(1)

    with pytest.raises(ValueError):
        RetentionPolicy(log, max_sessions=-1)
    with pytest.raises(ValueError):
        await RetentionPolicy(log).prune(-5)


@pytest.mark.asyncio
async def test_scheduled_prune_runs_in_background():
    log = await seeded_log(4)
    retention = RetentionPolicy(log, max_sessions=2)

    retention.schedule()
    retention.schedule()
    await retention.wait()

    assert len(await log.list()) == 2
