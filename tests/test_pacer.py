import asyncio

import pytest

from keyword_analyzer.config import Settings
from keyword_analyzer.infrastructure.pacer import FixedDelayPacer, TokenBucketPacer, build_pacer


def test_token_bucket_hands_out_capacity_without_waiting(clock, clocked_sleep):
    pacer = TokenBucketPacer(3, 60.0, clock=clock, sleep=clocked_sleep)

    async def run():
        for _ in range(3):
            await pacer.acquire()

    asyncio.run(run())

    assert clocked_sleep.calls == []
    assert pacer.tokens_remaining == 0


def test_token_bucket_waits_for_next_refill_boundary(clock, clocked_sleep):
    pacer = TokenBucketPacer(2, 60.0, clock=clock, sleep=clocked_sleep)

    async def run():
        await pacer.acquire()
        await pacer.acquire()
        clock.advance(10)
        await pacer.acquire()

    asyncio.run(run())

    assert clocked_sleep.calls == [50.0]
    assert clock.now == 60.0
    assert pacer.tokens_remaining == 1
    assert pacer.refill_timestamp == 60.0


def test_token_bucket_refills_in_one_step(clock, clocked_sleep):
    pacer = TokenBucketPacer(5, 60.0, clock=clock, sleep=clocked_sleep)

    async def run():
        await pacer.acquire()
        clock.advance(30)
        await pacer.acquire()
        assert pacer.tokens_remaining == 3
        clock.advance(30)
        await pacer.acquire()

    asyncio.run(run())

    assert pacer.tokens_remaining == 4
    assert clocked_sleep.calls == []


def test_token_bucket_rejects_invalid_configuration():
    with pytest.raises(ValueError):
        TokenBucketPacer(0, 60.0)
    with pytest.raises(ValueError):
        TokenBucketPacer(1, 0)


def test_fixed_delay_spaces_successive_calls(clock, clocked_sleep):
    pacer = FixedDelayPacer(1.5, clock=clock, sleep=clocked_sleep)

    async def run():
        for _ in range(3):
            await pacer.acquire()

    asyncio.run(run())

    assert clocked_sleep.calls == [1.5, 1.5]


def test_fixed_delay_skips_wait_when_caller_was_already_slow(clock, clocked_sleep):
    pacer = FixedDelayPacer(1.0, clock=clock, sleep=clocked_sleep)

    async def run():
        await pacer.acquire()
        clock.advance(5)
        await pacer.acquire()

    asyncio.run(run())

    assert clocked_sleep.calls == []


def test_fixed_delay_queues_concurrent_callers(clock, recording_sleep):
    pacer = FixedDelayPacer(2.0, clock=clock, sleep=recording_sleep)

    async def run():
        await asyncio.gather(*(pacer.acquire() for _ in range(3)))

    asyncio.run(run())

    assert sorted(recording_sleep.calls) == [2.0, 4.0]


def test_build_pacer_follows_configured_mode():
    assert isinstance(build_pacer(Settings()), TokenBucketPacer)
    pacer = build_pacer(Settings(pacer_mode="fixed_delay", fixed_delay=0.5))
    assert isinstance(pacer, FixedDelayPacer)
    assert pacer.delay == 0.5
