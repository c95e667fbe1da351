"""Tests for the Redis lease store, against fakeredis."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import fakeredis
import pytest

from exclusivelease import (
    ExclusiveLease,
    LeaseNotFoundError,
    LeaseState,
    LeaseStore,
    RedisLeaseStore,
    StoreSnapshot,
)


def make_store() -> RedisLeaseStore:
    return RedisLeaseStore(fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True))


@pytest.mark.asyncio
async def test_set_if_absent() -> None:
    """Test SET NX PX semantics."""
    store = make_store()
    assert await store.set_if_absent("k", "1", 1000) is True
    assert await store.set_if_absent("k", "2", 1000) is False
    assert await store.client.get("k") == "1"
    assert 0 < await store.client.pttl("k") <= 1000


@pytest.mark.asyncio
async def test_reset_expiry() -> None:
    """Test PEXPIRE on a live key."""
    store = make_store()
    await store.set_if_absent("k", "1", 100)
    await store.reset_expiry("k", 5000)
    assert await store.client.pttl("k") > 4000


@pytest.mark.asyncio
async def test_reset_expiry_missing_key() -> None:
    """Test that PEXPIRE on an absent key raises LeaseNotFoundError."""
    store = make_store()
    with pytest.raises(LeaseNotFoundError):
        await store.reset_expiry("missing", 1000)


@pytest.mark.asyncio
async def test_delete() -> None:
    """Test DEL."""
    store = make_store()
    await store.set_if_absent("k", "1", 1000)
    await store.delete("k")
    assert await store.client.exists("k") == 0


@pytest.mark.asyncio
async def test_batch_read() -> None:
    """Test GET + PTTL in one transaction."""
    store = make_store()
    await store.set_if_absent("k", '{"a": 1}', 1000)

    snapshot = await store.batch_read("k")
    assert snapshot is not None
    assert snapshot.value == '{"a": 1}'
    assert snapshot.ttl_ms is not None and 0 < snapshot.ttl_ms <= 1000

    assert await store.batch_read("missing") == StoreSnapshot.empty()


@pytest.mark.asyncio
async def test_batch_read_without_expiry() -> None:
    """Test that a key without TTL reports no remaining TTL."""
    store = make_store()
    await store.client.set("k", '"x"')
    snapshot = await store.batch_read("k")
    assert snapshot == StoreSnapshot(value='"x"', ttl_ms=None)


def _pipeline_returning(results: object) -> MagicMock:
    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=results)
    pipe.__aenter__ = AsyncMock(return_value=pipe)
    pipe.__aexit__ = AsyncMock(return_value=None)
    client = MagicMock()
    client.pipeline.return_value = pipe
    return client


@pytest.mark.asyncio
async def test_batch_read_partial_failures() -> None:
    """Test that failed commands in the batch become absent fields."""
    client = _pipeline_returning([RuntimeError("WRONGTYPE"), 250])
    store = RedisLeaseStore(client)
    assert await store.batch_read("k") == StoreSnapshot(value=None, ttl_ms=250)

    client = _pipeline_returning([b'"x"', RuntimeError("boom")])
    store = RedisLeaseStore(client)
    assert await store.batch_read("k") == StoreSnapshot(value='"x"', ttl_ms=None)


@pytest.mark.asyncio
async def test_batch_read_null_reply() -> None:
    """Test that a null transaction reply becomes an empty snapshot."""
    store = RedisLeaseStore(_pipeline_returning(None))
    assert await store.batch_read("k") == StoreSnapshot.empty()


@pytest.mark.asyncio
async def test_lease_over_redis() -> None:
    """Test the full lease cycle on the Redis store."""
    store = make_store()
    lease = ExclusiveLease(
        name='some deployment "name" with spaces',
        store=store,
        ttl_ms=600,
        renewal_interval_ms=50,
        contents={"pod": "worker-1"},
    )

    assert await lease.acquire() is True
    assert await store.client.get(lease.key) == '{"pod": "worker-1"}'

    await asyncio.sleep(0.225)
    assert await store.client.pttl(lease.key) >= 550
    assert await lease.inspect() == {"pod": "worker-1"}

    await lease.release()
    assert lease.state is LeaseState.IDLE
    assert await store.client.get(lease.key) is None


@pytest.mark.asyncio
async def test_competing_leases_over_redis() -> None:
    """Test that only one of two racing leases wins on Redis."""
    store = make_store()
    first = ExclusiveLease(name="contested", store=store, auto_renew=False)
    second = ExclusiveLease(name="contested", store=store, auto_renew=False)

    results = await asyncio.gather(first.acquire(), second.acquire())

    assert sorted(results) == [False, True]
    assert await store.client.dbsize() == 1

    await first.release()
    await second.release()


@pytest.mark.asyncio
async def test_close() -> None:
    """Test that close() closes the client."""
    client = MagicMock()
    client.aclose = AsyncMock()
    await RedisLeaseStore(client).close()
    client.aclose.assert_awaited_once()


def test_satisfies_protocol() -> None:
    """Test that the Redis store implements LeaseStore."""
    assert isinstance(make_store(), LeaseStore)
