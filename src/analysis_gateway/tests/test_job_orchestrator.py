import pytest

from src.analysis_gateway.domain.enums import JobStatus
from src.analysis_gateway.domain.errors import JobFailed, JobTimeout, NoResult, UpstreamRejected
from src.analysis_gateway.services.context_cache import ContextCache
from src.analysis_gateway.services.job_orchestrator import JobOrchestrator

R, S, F, C = JobStatus.RUNNING, JobStatus.SUCCEEDED, JobStatus.FAILED, JobStatus.CANCELLED


def _orchestrator(client, **kwargs) -> JobOrchestrator:
    kwargs.setdefault("poll_interval", 0)
    return JobOrchestrator(client, ContextCache(client), **kwargs)


@pytest.mark.anyio
async def test_polls_until_succeeded_then_fetches(make_job_client):
    client = make_job_client(statuses={"diagnosis": [R, R, S]}, results={"diagnosis": "looks fine"})

    result = await _orchestrator(client).run("diagnosis", "sample")

    assert result == "looks fine"
    assert client.count("poll") == 3
    assert client.count("fetch_result") == 1
    assert [c[0] for c in client.calls] == ["open", "submit", "start", "poll", "poll", "poll", "fetch_result"]


@pytest.mark.anyio
@pytest.mark.parametrize("terminal", [F, C])
async def test_non_succeeded_terminal_status_is_job_failed(make_job_client, terminal):
    client = make_job_client(statuses={"treatment": [R, terminal]})

    with pytest.raises(JobFailed) as exc_info:
        await _orchestrator(client).run("treatment", "sample")

    assert exc_info.value.status is terminal
    assert exc_info.value.analysis_type == "treatment"
    assert client.count("fetch_result") == 0


@pytest.mark.anyio
async def test_poll_cap_raises_job_timeout(make_job_client):
    client = make_job_client(statuses={"diagnosis": [R]})

    with pytest.raises(JobTimeout):
        await _orchestrator(client, max_polls=4).run("diagnosis", "sample")

    assert client.count("poll") == 4
    assert client.count("fetch_result") == 0


@pytest.mark.anyio
async def test_deadline_raises_job_timeout(make_job_client):
    client = make_job_client(statuses={"diagnosis": [R]})
    orchestrator = _orchestrator(client, poll_interval=0.05, deadline_seconds=0.01)

    with pytest.raises(JobTimeout):
        await orchestrator.run("diagnosis", "sample")

    assert client.count("poll") == 1


@pytest.mark.anyio
async def test_client_error_aborts_without_retry(make_job_client):
    client = make_job_client(
        errors={("start", "anamnese"): UpstreamRejected("bad assistant", status_code=404)}
    )

    with pytest.raises(UpstreamRejected) as exc_info:
        await _orchestrator(client).run("anamnese", "sample")

    assert exc_info.value.analysis_type == "anamnese"
    assert client.count("start") == 1
    assert client.count("poll") == 0


@pytest.mark.anyio
async def test_missing_result_is_reported(make_job_client):
    client = make_job_client(errors={("fetch_result", "diagnosis"): NoResult()})

    with pytest.raises(NoResult):
        await _orchestrator(client).run("diagnosis", "sample")


@pytest.mark.anyio
async def test_context_reused_between_runs(make_job_client):
    client = make_job_client()
    orchestrator = _orchestrator(client)

    await orchestrator.run("diagnosis", "first")
    await orchestrator.run("diagnosis", "second")

    assert client.count("open") == 1
    assert client.count("submit") == 2
    assert client.count("start") == 2


def test_rejects_invalid_configuration(make_job_client):
    client = make_job_client()
    with pytest.raises(ValueError):
        _orchestrator(client, deadline_seconds=0)
    with pytest.raises(ValueError):
        _orchestrator(client, max_polls=0)
