"""HTTP-клиент к assistants-бэкенду (threads / messages / runs)."""
from __future__ import annotations

import logging
import time
from typing import Any, Mapping

import httpx

from src.analysis_gateway.domain.enums import JobStatus
from src.analysis_gateway.domain.errors import (
    InvalidRequest,
    NoResult,
    UpstreamRejected,
    UpstreamUnavailable,
)

logger = logging.getLogger(__name__)

# Статусы run'а на стороне бэкенда -> статус job'а
RUN_STATUS_MAP: dict[str, JobStatus] = {
    "queued": JobStatus.RUNNING,
    "in_progress": JobStatus.RUNNING,
    "requires_action": JobStatus.RUNNING,
    "cancelling": JobStatus.RUNNING,
    "completed": JobStatus.SUCCEEDED,
    "cancelled": JobStatus.CANCELLED,
    "failed": JobStatus.FAILED,
    "expired": JobStatus.FAILED,
    "incomplete": JobStatus.FAILED,
}


class AssistantsJobClient:
    """
    Реализация JobClient поверх assistants API.

    Контекст (thread) создаётся через `open`, вход добавляется через
    `submit`, job (run) запускается через `start` и опрашивается через
    `poll`. Клиент ничего не кэширует: каждый вызов идёт в сеть.
    """

    def __init__(
        self,
        api_key: str,
        assistants: Mapping[str, str],
        *,
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("api_key is required")

        self._assistants = {k.lower(): v for k, v in assistants.items()}
        self._base_url = base_url.rstrip("/")
        self._headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
            "OpenAI-Beta": "assistants=v2",
        }
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None

    async def __aenter__(self) -> "AssistantsJobClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    async def _request(self, method: str, path: str, *, json: Any = None, params: Any = None) -> dict[str, Any]:
        started = time.monotonic()
        try:
            response = await self._client.request(
                method,
                f"{self._base_url}{path}",
                headers=self._headers,
                json=json,
                params=params,
            )
        except httpx.HTTPError as exc:
            logger.warning("assistants request %s %s failed: %s", method, path, exc)
            raise UpstreamUnavailable(f"Analysis backend is unreachable: {exc}") from exc

        duration_ms = int((time.monotonic() - started) * 1000)
        logger.info("assistants %s %s -> %s in %sms", method, path, response.status_code, duration_ms)

        if response.status_code >= 500:
            raise UpstreamUnavailable(
                f"Analysis backend error ({response.status_code}): {self._error_message(response)}"
            )
        if response.status_code >= 400:
            raise UpstreamRejected(
                f"Analysis backend rejected the request: {self._error_message(response)}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamUnavailable("Analysis backend returned a non-JSON response") from exc

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text[:200] or "request failed"
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        return "request failed"

    def assistant_id(self, analysis_type: str) -> str:
        try:
            return self._assistants[analysis_type.lower()]
        except KeyError:
            raise InvalidRequest(f"Invalid analysis type: {analysis_type}") from None

    # ------------------------------------------------------------------
    # JobClient
    # ------------------------------------------------------------------
    async def open(self, analysis_type: str) -> str:
        data = await self._request(
            "POST",
            "/threads",
            json={"metadata": {"source": "analysis-gateway", "analysis_type": analysis_type}},
        )
        return str(data["id"])

    async def submit(self, context_id: str, text: str) -> None:
        await self._request(
            "POST",
            f"/threads/{context_id}/messages",
            json={"role": "user", "content": text},
        )

    async def start(self, context_id: str, analysis_type: str) -> str:
        assistant_id = self.assistant_id(analysis_type)
        data = await self._request(
            "POST",
            f"/threads/{context_id}/runs",
            json={"assistant_id": assistant_id},
        )
        return str(data["id"])

    async def poll(self, context_id: str, job_id: str) -> JobStatus:
        data = await self._request("GET", f"/threads/{context_id}/runs/{job_id}")
        raw = str(data.get("status", "")).lower()
        status = RUN_STATUS_MAP.get(raw)
        if status is None:
            # неизвестный статус считаем незавершённым, его ограничит дедлайн job'а
            logger.warning("unknown run status %r for run %s", raw, job_id)
            return JobStatus.RUNNING
        return status

    async def fetch_result(self, context_id: str) -> str:
        data = await self._request(
            "GET",
            f"/threads/{context_id}/messages",
            params={"order": "desc"},
        )
        for message in data.get("data") or []:
            if message.get("role") != "assistant":
                continue
            content = message.get("content") or []
            if not content:
                break
            text = (content[0].get("text") or {}).get("value")
            if text is None:
                break
            return str(text)
        raise NoResult()
