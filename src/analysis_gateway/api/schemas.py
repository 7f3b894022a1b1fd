from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.analysis_gateway.domain.value_objects import QuotaRecord, QuotaSnapshot


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# Auth
class AuthRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class AuthTokenResponse(BaseModel):
    success: bool = True
    token: str


# Analysis
class AnalyzeRequest(BaseModel):
    # обязательность полей проверяет BatchDispatcher, чтобы ошибка была 400, а не 422
    text: Optional[str] = None
    actions: Optional[list[Any]] = None
    style: str = "default"
    gender: str = "default"


class QuotaResponse(CamelModel):
    used: int
    total: int
    remaining: int
    reset_date: Optional[datetime] = Field(default=None, alias="resetDate")


class AnalyzeResponse(BaseModel):
    success: bool = True
    results: dict[str, str]
    quota: QuotaResponse


class QuotaStatusResponse(BaseModel):
    success: bool = True
    quota: QuotaResponse


# Users
class UserPlanRequest(CamelModel):
    user_id: Optional[int] = Field(default=None, alias="userId")
    email: Optional[str] = None
    plan_id: Optional[int] = Field(default=None, alias="planId")
    key: Optional[str] = None


class UserPlanInfo(CamelModel):
    user_id: int = Field(alias="userId")
    email: str
    plan_id: int = Field(alias="planId")
    used_requests: int = Field(alias="usedRequests")
    total_requests: int = Field(alias="totalRequests")
    reset_date: Optional[datetime] = Field(default=None, alias="resetDate")


class UserPlanResponse(BaseModel):
    success: bool = True
    message: str
    user: UserPlanInfo


# Мапперы домен -> API DTO
def quota_to_response(quota: QuotaSnapshot | QuotaRecord) -> QuotaResponse:
    if isinstance(quota, QuotaRecord):
        return QuotaResponse(
            used=quota.used_requests,
            total=quota.total_requests,
            remaining=quota.total_requests - quota.used_requests,
            reset_date=quota.reset_date,
        )
    return QuotaResponse(used=quota.used, total=quota.total, remaining=quota.remaining)


def user_plan_to_response(record: QuotaRecord, email: str) -> UserPlanInfo:
    return UserPlanInfo(
        user_id=record.user_id,
        email=email,
        plan_id=record.plan_id,
        used_requests=record.used_requests,
        total_requests=record.total_requests,
        reset_date=record.reset_date,
    )
