import asyncio
import logging
from typing import Optional

from src.analysis_gateway.domain.contracts.job_client import JobClient

logger = logging.getLogger(__name__)


class ContextCache:
    """
    Тип анализа -> id внешнего контекста (thread).

    Контекст создаётся лениво при первом обращении и переиспользуется всеми
    запросами этого типа. Конкурентные вызовы для одного типа, пока контекст
    создаётся, ждут результат первого вызова (single-flight): `open`
    выполняется ровно один раз. Неудачное создание не кэшируется.
    """

    def __init__(self, client: JobClient):
        self._client = client
        self._contexts: dict[str, str] = {}
        self._pending: dict[str, asyncio.Future] = {}

    async def get_or_create(self, analysis_type: str) -> str:
        context_id = self._contexts.get(analysis_type)
        if context_id is not None:
            return context_id

        pending = self._pending.get(analysis_type)
        if pending is None:
            pending = asyncio.ensure_future(self._open(analysis_type))
            self._pending[analysis_type] = pending
        else:
            logger.debug("waiting for pending %s context", analysis_type)

        # отмена одного ожидающего не должна отменять создание для остальных
        return await asyncio.shield(pending)

    async def _open(self, analysis_type: str) -> str:
        flight = asyncio.current_task()
        try:
            logger.info("creating new context for %s", analysis_type)
            context_id = await self._client.open(analysis_type)
            # после reset() этот flight уже не текущий: результат не публикуем
            if self._pending.get(analysis_type) is flight:
                self._contexts[analysis_type] = context_id
            return context_id
        finally:
            if self._pending.get(analysis_type) is flight:
                del self._pending[analysis_type]

    def get(self, analysis_type: str) -> Optional[str]:
        return self._contexts.get(analysis_type)

    def reset(self) -> None:
        self._contexts.clear()
        self._pending.clear()

    def __len__(self) -> int:
        return len(self._contexts)
