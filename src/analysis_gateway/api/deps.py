from typing import Generator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from src.analysis_gateway.core.settings import settings
from src.analysis_gateway.core.security import decode_token, user_id_from_claims
from src.analysis_gateway.domain.contracts.job_client import JobClient
from src.analysis_gateway.domain.contracts.uow import UoW
from src.analysis_gateway.domain.errors import Unauthorized, UpstreamUnavailable
from src.analysis_gateway.infra.db import SessionLocal
from src.analysis_gateway.infra.identity_client import IdentityClient
from src.analysis_gateway.infra.uow import SqlAlchemyUoW

from src.analysis_gateway.services.auth_service import AuthService
from src.analysis_gateway.services.batch_dispatcher import BatchDispatcher
from src.analysis_gateway.services.context_cache import ContextCache
from src.analysis_gateway.services.job_orchestrator import JobOrchestrator
from src.analysis_gateway.services.quota_ledger import QuotaLedger
from src.analysis_gateway.services.users_service import UsersService


bearer_scheme = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    """
    Dependency для SQLAlchemy-сессии.
    Сессия создаётся на запрос и гарантированно закрывается.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_uow(db: Session = Depends(get_db)) -> UoW:
    """
    Dependency для Unit of Work.
    """
    return SqlAlchemyUoW(db)


def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> int:
    """
    Достаёт user id из Bearer-токена: проверяет подпись и срок действия.
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise Unauthorized("Unauthorized - Invalid auth header")
    payload = decode_token(credentials.credentials)
    return user_id_from_claims(payload)


# Долгоживущие компоненты создаются в lifespan и лежат в app.state
def get_job_client(request: Request) -> JobClient:
    client = getattr(request.app.state, "job_client", None)
    if client is None:
        raise UpstreamUnavailable("Server configuration error")
    return client


def get_context_cache(request: Request) -> ContextCache:
    cache = getattr(request.app.state, "context_cache", None)
    if cache is None:
        raise UpstreamUnavailable("Server configuration error")
    return cache


def get_identity_client(request: Request) -> IdentityClient:
    return request.app.state.identity_client


# Service factories (composition root)
def get_orchestrator(
    client: JobClient = Depends(get_job_client),
    contexts: ContextCache = Depends(get_context_cache),
) -> JobOrchestrator:
    return JobOrchestrator(
        client,
        contexts,
        poll_interval=settings.POLL_INTERVAL_SECONDS,
        deadline_seconds=settings.JOB_DEADLINE_SECONDS,
        max_polls=settings.JOB_MAX_POLLS,
    )

def get_quota_ledger(uow: UoW = Depends(get_uow)) -> QuotaLedger:
    return QuotaLedger(uow)

def get_batch_dispatcher(
    orchestrator: JobOrchestrator = Depends(get_orchestrator),
    ledger: QuotaLedger = Depends(get_quota_ledger),
) -> BatchDispatcher:
    return BatchDispatcher(ledger, orchestrator, settings.analysis_types)

def get_auth_service(identity: IdentityClient = Depends(get_identity_client)) -> AuthService:
    return AuthService(identity)

def get_users_service(uow: UoW = Depends(get_uow)) -> UsersService:
    return UsersService(uow)
