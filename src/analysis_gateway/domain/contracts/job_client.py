from typing import Protocol

from src.analysis_gateway.domain.enums import JobStatus


class JobClient(Protocol):
    """
    Операции над внешним бэкендом анализа для одного типа анализа.
    Клиент не хранит состояния между вызовами.
    """

    async def open(self, analysis_type: str) -> str: ...
    async def submit(self, context_id: str, text: str) -> None: ...
    async def start(self, context_id: str, analysis_type: str) -> str: ...
    async def poll(self, context_id: str, job_id: str) -> JobStatus: ...
    async def fetch_result(self, context_id: str) -> str: ...
