import asyncio

import pytest

from reportsync.core.enums import DataTier
from reportsync.core.errors import RemoteUnavailableError
from reportsync.services.fallback import try_remote


async def _value(v):
    return v


async def test_first_accepted_tier_wins():
    result = await (
        try_remote(lambda: _value([1]), accept=bool)
        .or_else(DataTier.local, lambda: _value([2]))
        .run()
    )
    assert result.ok
    assert result.tier == DataTier.remote
    assert result.value == [1]
    assert result.errors == []


async def test_rejected_answer_falls_through():
    result = await (
        try_remote(lambda: _value([]), accept=bool)
        .or_else(DataTier.local, lambda: _value([2]))
        .run()
    )
    assert result.tier == DataTier.local
    assert result.value == [2]


async def test_remote_failure_is_recorded_and_skipped():
    async def broken():
        raise RemoteUnavailableError("down")

    result = await try_remote(broken).or_else(DataTier.local, lambda: _value("cached")).run()
    assert result.tier == DataTier.local
    assert isinstance(result.errors[0], RemoteUnavailableError)


async def test_timeout_counts_as_failure():
    async def slow():
        await asyncio.sleep(1)
        return "late"

    result = await try_remote(slow, timeout=0.01).run()
    assert not result.ok
    assert result.value is None
    assert isinstance(result.errors[0], asyncio.TimeoutError)


async def test_unexpected_errors_propagate():
    async def bug():
        raise KeyError("not a tier failure")

    with pytest.raises(KeyError):
        await try_remote(bug).or_else(DataTier.local, lambda: _value(1)).run()
