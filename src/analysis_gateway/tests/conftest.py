import asyncio
import os
import tempfile
from pathlib import Path

# Окружение выставляем до импорта приложения: settings и engine создаются при импорте
_TMP_DIR = Path(tempfile.mkdtemp(prefix="analysis_gateway_"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR / 'test.db'}"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["SUBSCRIPTION_API_KEY"] = "test-api-key"
os.environ["POLL_INTERVAL_SECONDS"] = "0"
os.environ["JOB_DEADLINE_SECONDS"] = "5"

import pytest
from httpx import AsyncClient, ASGITransport

from src.analysis_gateway.main import app as fastapi_app
from src.analysis_gateway.api import deps
from src.analysis_gateway.core.security import create_access_token
from src.analysis_gateway.domain.enums import JobStatus
from src.analysis_gateway.domain.errors import InvalidCredentials
from src.analysis_gateway.infra.db import Base, SessionLocal, engine
from src.analysis_gateway.infra.models import PlanORM, UserORM
from src.analysis_gateway.services.context_cache import ContextCache


class FakeJobClient:
    """
    JobClient в памяти. Статусы опроса задаются списком на тип анализа,
    ошибки -- словарём {(метод, тип): исключение}.
    """

    def __init__(self, statuses=None, results=None, errors=None, open_delay: float = 0.0):
        self.statuses = statuses or {}
        self.results = results or {}
        self.errors = errors or {}
        self.open_delay = open_delay

        self.calls: list[tuple] = []
        self.active = 0
        self.max_active = 0
        self._context_types: dict[str, str] = {}
        self._job_types: dict[str, str] = {}
        self._polls_left: dict[str, list[JobStatus]] = {}

    def count(self, method: str, analysis_type: str | None = None) -> int:
        return sum(
            1 for c in self.calls
            if c[0] == method and (analysis_type is None or c[1] == analysis_type)
        )

    def _maybe_fail(self, method: str, analysis_type: str) -> None:
        exc = self.errors.get((method, analysis_type))
        if exc is not None:
            raise exc

    async def open(self, analysis_type: str) -> str:
        self.calls.append(("open", analysis_type))
        context_id = f"ctx-{analysis_type}-{self.count('open', analysis_type)}"
        await asyncio.sleep(self.open_delay)
        self._maybe_fail("open", analysis_type)
        self._context_types[context_id] = analysis_type
        return context_id

    async def submit(self, context_id: str, text: str) -> None:
        analysis_type = self._context_types[context_id]
        self.calls.append(("submit", analysis_type, text))
        self._maybe_fail("submit", analysis_type)
        self.active += 1
        self.max_active = max(self.max_active, self.active)

    async def start(self, context_id: str, analysis_type: str) -> str:
        self.calls.append(("start", analysis_type))
        self._maybe_fail("start", analysis_type)
        job_id = f"run-{analysis_type}-{self.count('start', analysis_type)}"
        self._job_types[job_id] = analysis_type
        self._polls_left[job_id] = list(self.statuses.get(analysis_type, [JobStatus.SUCCEEDED]))
        return job_id

    async def poll(self, context_id: str, job_id: str) -> JobStatus:
        analysis_type = self._job_types[job_id]
        self.calls.append(("poll", analysis_type))
        self._maybe_fail("poll", analysis_type)
        left = self._polls_left[job_id]
        status = left.pop(0) if len(left) > 1 else left[0]
        if status.is_terminal:
            self.active -= 1
        return status

    async def fetch_result(self, context_id: str) -> str:
        analysis_type = self._context_types[context_id]
        self.calls.append(("fetch_result", analysis_type))
        self._maybe_fail("fetch_result", analysis_type)
        return self.results.get(analysis_type, f"{analysis_type} result")


class FakeIdentityClient:
    def __init__(self, users: dict[str, tuple[str, int]] | None = None):
        self.users = users or {}

    async def validate_credentials(self, username: str, password: str) -> int:
        known = self.users.get(username)
        if not known or known[0] != password:
            raise InvalidCredentials()
        return known[1]


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(scope="session", autouse=True)
def _schema():
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture(autouse=True)
def _clean_tables():
    db = SessionLocal()
    try:
        db.query(UserORM).delete()
        db.query(PlanORM).delete()
        db.commit()
    finally:
        db.close()


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def seed_user():
    """
    Создаёт тариф и пользователя напрямую в БД.
    Возвращает user_id.
    """
    def _make(user_id: int = 42, used: int = 0, total: int = 10, plan_id: int = 1, email: str = "user@test.local"):
        db = SessionLocal()
        try:
            if not db.get(PlanORM, plan_id):
                db.add(PlanORM(plan_id=plan_id, name=f"plan-{plan_id}", total_requests=total))
                db.flush()
            db.add(UserORM(id=user_id, email=email, plan_id=plan_id, used_requests=used))
            db.commit()
        finally:
            db.close()
        return user_id

    return _make


@pytest.fixture
def used_requests():
    def _get(user_id: int) -> int:
        db = SessionLocal()
        try:
            return int(db.get(UserORM, user_id).used_requests)
        finally:
            db.close()

    return _get


@pytest.fixture
def make_job_client():
    return FakeJobClient


@pytest.fixture
def job_client():
    return FakeJobClient()


@pytest.fixture
def identity_client():
    return FakeIdentityClient({"alice": ("secret", 42)})


@pytest.fixture(scope="session")
def app():
    return fastapi_app


@pytest.fixture
async def client(app, job_client, identity_client):
    """
    HTTP client поверх ASGI приложения (без реального поднятия сервера).
    lifespan не запускается, поэтому внешние клиенты подменяем через overrides.
    """
    contexts = ContextCache(job_client)
    app.dependency_overrides[deps.get_job_client] = lambda: job_client
    app.dependency_overrides[deps.get_context_cache] = lambda: contexts
    app.dependency_overrides[deps.get_identity_client] = lambda: identity_client

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _make(user_id: int = 42) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user_id, username='alice')}"}

    return _make
