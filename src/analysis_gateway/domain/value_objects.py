from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class QuotaSnapshot:
    used: int
    total: int

    @property
    def remaining(self) -> int:
        return self.total - self.used


@dataclass(frozen=True)
class QuotaRecord:
    """Счётчик запросов пользователя вместе с лимитом его тарифа."""
    user_id: int
    plan_id: int
    used_requests: int
    total_requests: int
    reset_date: Optional[datetime] = None

    def snapshot(self) -> QuotaSnapshot:
        return QuotaSnapshot(used=self.used_requests, total=self.total_requests)


@dataclass(frozen=True)
class BatchRequest:
    text: str
    actions: list[str]
    style: str = "default"
    gender: str = "default"


@dataclass(frozen=True)
class BatchResult:
    # ключи -- типы анализа в том виде, в каком их прислал клиент
    results: dict[str, str]
    quota: QuotaSnapshot
