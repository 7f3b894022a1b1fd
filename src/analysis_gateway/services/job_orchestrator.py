import asyncio
import logging
import time
from typing import Optional

from src.analysis_gateway.domain.contracts.job_client import JobClient
from src.analysis_gateway.domain.enums import JobStatus
from src.analysis_gateway.domain.errors import GatewayError, JobFailed, JobTimeout
from src.analysis_gateway.services.context_cache import ContextCache

logger = logging.getLogger(__name__)

PROGRESS_LOG_EVERY = 5


class JobOrchestrator:
    """
    Доводит один job (тип анализа + текст) до терминального состояния:

        Start -> ContextReady -> Submitted -> Running -> Succeeded | Failed

    Переходы строго последовательны. Любая ошибка клиента прерывает run
    с тем же видом ошибки, без повторов. Опрос идёт с фиксированным
    интервалом и ограничен дедлайном (и, опционально, числом опросов).
    """

    def __init__(
        self,
        client: JobClient,
        contexts: ContextCache,
        *,
        poll_interval: float = 1.0,
        deadline_seconds: float = 300.0,
        max_polls: Optional[int] = None,
    ):
        if poll_interval < 0:
            raise ValueError("poll_interval must be >= 0")
        if deadline_seconds <= 0:
            raise ValueError("deadline_seconds must be > 0")
        if max_polls is not None and max_polls < 1:
            raise ValueError("max_polls must be >= 1")

        self.client = client
        self.contexts = contexts
        self.poll_interval = poll_interval
        self.deadline_seconds = deadline_seconds
        self.max_polls = max_polls

    async def run(self, analysis_type: str, text: str) -> str:
        started = time.monotonic()
        try:
            return await self._run(analysis_type, text)
        except GatewayError as e:
            if e.analysis_type is None:
                e.analysis_type = analysis_type
            logger.warning("%s analysis failed: %s", analysis_type, e.message)
            raise
        finally:
            logger.info(
                "%s analysis finished in %sms",
                analysis_type,
                int((time.monotonic() - started) * 1000),
            )

    async def _run(self, analysis_type: str, text: str) -> str:
        context_id = await self.contexts.get_or_create(analysis_type)

        logger.info("adding message to context %s", context_id)
        await self.client.submit(context_id, text)

        job_id = await self.client.start(context_id, analysis_type)
        logger.info("started %s job %s", analysis_type, job_id)

        status = await self._wait(context_id, job_id)
        if status is not JobStatus.SUCCEEDED:
            raise JobFailed(status)

        return await self.client.fetch_result(context_id)

    async def _wait(self, context_id: str, job_id: str) -> JobStatus:
        deadline = time.monotonic() + self.deadline_seconds

        status = await self.client.poll(context_id, job_id)
        polls = 1

        while not status.is_terminal:
            if self.max_polls is not None and polls >= self.max_polls:
                raise JobTimeout(f"Job {job_id} still running after {polls} polls")
            if time.monotonic() + self.poll_interval > deadline:
                raise JobTimeout(f"Job {job_id} did not finish within {self.deadline_seconds:g}s")

            await asyncio.sleep(self.poll_interval)
            status = await self.client.poll(context_id, job_id)
            polls += 1

            if polls % PROGRESS_LOG_EVERY == 0:
                logger.info("still polling job %s (attempt %s)", job_id, polls)

        logger.info("job %s reached %s after %s polls", job_id, status, polls)
        return status
