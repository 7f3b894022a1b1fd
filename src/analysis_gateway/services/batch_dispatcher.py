import asyncio
import logging
from typing import Iterable, Protocol

import anyio

from src.analysis_gateway.domain.errors import InvalidRequest
from src.analysis_gateway.domain.value_objects import BatchRequest, BatchResult, QuotaSnapshot
from src.analysis_gateway.services.job_orchestrator import JobOrchestrator

logger = logging.getLogger(__name__)

DEFAULT_HINT = "default"


class Ledger(Protocol):
    def reserve(self, user_id: int, count: int) -> QuotaSnapshot: ...


def format_text(text: str, style: str = DEFAULT_HINT, gender: str = DEFAULT_HINT) -> str:
    hints = []
    if style and style != DEFAULT_HINT:
        hints.append(f"Style: {style}")
    if gender and gender != DEFAULT_HINT:
        hints.append(f"Gender: {gender}")
    if not hints:
        return text
    return "\n".join(hints) + "\n\n" + text


class BatchDispatcher:
    """
    Валидирует набор типов анализа, резервирует квоту на весь batch и
    запускает по одному JobOrchestrator.run на каждый уникальный тип.

    Квота списывается за попытку, а не за успех: при падении job'а
    зарезервированные запросы не возвращаются.
    """

    def __init__(self, ledger: Ledger, orchestrator: JobOrchestrator, analysis_types: Iterable[str]):
        self.ledger = ledger
        self.orchestrator = orchestrator
        self.analysis_types = frozenset(t.lower() for t in analysis_types)

    def validate(self, req: BatchRequest) -> list[str]:
        if not req.text or not req.text.strip():
            raise InvalidRequest("Text and actions required")
        if not req.actions:
            raise InvalidRequest("Text and actions required")

        normalized = []
        for action in req.actions:
            if not isinstance(action, str) or not action.strip():
                raise InvalidRequest("Analysis types must be non-empty strings")
            normalized.append(action.strip().lower())

        invalid = [t for t in normalized if t not in self.analysis_types]
        if invalid:
            raise InvalidRequest(f"Invalid analysis types: {', '.join(invalid)}")
        return normalized

    async def dispatch(self, user_id: int, req: BatchRequest) -> BatchResult:
        normalized = self.validate(req)

        # синхронный поход в БД -- в отдельном потоке, чтобы не блокировать loop
        quota = await anyio.to_thread.run_sync(self.ledger.reserve, user_id, len(normalized))

        formatted = format_text(req.text, req.style, req.gender)
        distinct = list(dict.fromkeys(normalized))

        logger.info(
            "starting analysis for user %s: types=%s text_length=%s",
            user_id, distinct, len(req.text),
        )

        # gather пробрасывает первую ошибку; остальные run'ы не отменяются,
        # их результаты просто отбрасываются
        outputs = await asyncio.gather(
            *(self.orchestrator.run(t, formatted) for t in distinct)
        )
        by_type = dict(zip(distinct, outputs))

        results = {original: by_type[norm] for original, norm in zip(req.actions, normalized)}

        logger.info("analysis completed for user %s: %s", user_id, list(results))
        return BatchResult(results=results, quota=quota)
