from fastapi import APIRouter, Depends

from src.analysis_gateway.api.deps import get_current_user_id, get_quota_ledger, get_users_service
from src.analysis_gateway.api.schemas import (
    QuotaStatusResponse,
    UserPlanRequest,
    UserPlanResponse,
    quota_to_response,
    user_plan_to_response,
)
from src.analysis_gateway.domain.errors import InvalidRequest
from src.analysis_gateway.services.quota_ledger import QuotaLedger
from src.analysis_gateway.services.users_service import UsersService


router = APIRouter(tags=["users"])


@router.get("/quota", response_model=QuotaStatusResponse)
def quota(
    user_id: int = Depends(get_current_user_id),
    ledger: QuotaLedger = Depends(get_quota_ledger),
):
    return QuotaStatusResponse(quota=quota_to_response(ledger.status(user_id)))


@router.post("/user/plan", response_model=UserPlanResponse)
def upsert_user_plan(
    req: UserPlanRequest,
    svc: UsersService = Depends(get_users_service),
):
    """
    Назначение тарифа пользователю (вызывается биллингом, защищено API-ключом).
    """
    if not req.user_id or not req.email or not req.plan_id or not req.key:
        raise InvalidRequest("userId, email, planId, and key are required")

    created, record = svc.upsert_plan(req.user_id, email=req.email, plan_id=req.plan_id, key=req.key)
    return UserPlanResponse(
        message="User created" if created else "User updated",
        user=user_plan_to_response(record, req.email),
    )
