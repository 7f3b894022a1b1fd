from datetime import datetime
from typing import Optional, Protocol

from src.analysis_gateway.domain.entities.plan import Plan
from src.analysis_gateway.domain.entities.user import User
from src.analysis_gateway.domain.value_objects import QuotaRecord


class UserRepo(Protocol):
    def get_by_id(self, user_id: int) -> Optional[User]: ...
    def get_with_plan(self, user_id: int) -> Optional[QuotaRecord]: ...
    # (used_requests, total_requests) после инкремента
    def try_reserve(self, user_id: int, count: int) -> Optional[tuple[int, int]]: ...
    def create(self, user_id: int, email: str, plan_id: int, reset_date: datetime) -> User: ...
    def update_plan(self, user_id: int, email: str, plan_id: int, reset_date: datetime) -> User: ...


class PlanRepo(Protocol):
    def get_by_id(self, plan_id: int) -> Optional[Plan]: ...
    def upsert(self, plan_id: int, name: str, total_requests: int) -> Plan: ...
