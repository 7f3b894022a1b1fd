import asyncio

import pytest

from src.analysis_gateway.domain.errors import UpstreamUnavailable
from src.analysis_gateway.services.context_cache import ContextCache


@pytest.mark.anyio
async def test_concurrent_callers_share_single_open(make_job_client):
    client = make_job_client(open_delay=0.01)
    cache = ContextCache(client)

    ids = await asyncio.gather(*(cache.get_or_create("diagnosis") for _ in range(10)))

    assert client.count("open") == 1
    assert len(set(ids)) == 1
    assert cache.get("diagnosis") == ids[0]


@pytest.mark.anyio
async def test_context_is_reused_across_calls_and_scoped_per_type(make_job_client):
    client = make_job_client()
    cache = ContextCache(client)

    first = await cache.get_or_create("anamnese")
    second = await cache.get_or_create("anamnese")
    other = await cache.get_or_create("treatment")

    assert first == second
    assert first != other
    assert client.count("open", "anamnese") == 1
    assert client.count("open", "treatment") == 1
    assert len(cache) == 2


@pytest.mark.anyio
async def test_failed_open_is_not_cached(make_job_client):
    client = make_job_client(
        open_delay=0.01,
        errors={("open", "diagnosis"): UpstreamUnavailable("backend down")},
    )
    cache = ContextCache(client)

    results = await asyncio.gather(
        *(cache.get_or_create("diagnosis") for _ in range(3)),
        return_exceptions=True,
    )
    assert all(isinstance(r, UpstreamUnavailable) for r in results)
    assert client.count("open") == 1
    assert cache.get("diagnosis") is None

    client.errors.clear()
    context_id = await cache.get_or_create("diagnosis")
    assert context_id == "ctx-diagnosis-2"
    assert client.count("open") == 2


@pytest.mark.anyio
async def test_reset_forgets_contexts(make_job_client):
    client = make_job_client()
    cache = ContextCache(client)

    await cache.get_or_create("diagnosis")
    cache.reset()
    await cache.get_or_create("diagnosis")

    assert client.count("open") == 2


@pytest.mark.anyio
async def test_reset_during_pending_open_discards_old_flight(make_job_client):
    client = make_job_client(open_delay=0.05)
    cache = ContextCache(client)

    old_flight = asyncio.ensure_future(cache.get_or_create("diagnosis"))
    await asyncio.sleep(0.01)
    cache.reset()

    client.open_delay = 0.2
    new_flight = asyncio.ensure_future(cache.get_or_create("diagnosis"))
    await asyncio.sleep(0.06)

    # старый flight завершился, но не должен ни опубликовать свой контекст,
    # ни снять ожидание нового
    assert await old_flight == "ctx-diagnosis-1"
    assert cache.get("diagnosis") is None

    third = await cache.get_or_create("diagnosis")

    assert third == await new_flight == "ctx-diagnosis-2"
    assert client.count("open") == 2
    assert cache.get("diagnosis") == "ctx-diagnosis-2"
