from contextlib import asynccontextmanager
import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from src.analysis_gateway.api.errors import register_error_handlers
from src.analysis_gateway.api.routers import auth_router, analysis_router, users_router
from src.analysis_gateway.core.logs import configure_logging, request_id_var
from src.analysis_gateway.core.settings import settings
from src.analysis_gateway.infra.assistants_client import AssistantsJobClient
from src.analysis_gateway.infra.identity_client import IdentityClient
from src.analysis_gateway.services.context_cache import ContextCache

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


# Определение жизненного цикла
@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.identity_client = IdentityClient(
        settings.IDENTITY_API_URL,
        settings.IDENTITY_RANDOM_PARAM,
        timeout=settings.UPSTREAM_TIMEOUT_SECONDS,
    )
    app.state.job_client = None
    app.state.context_cache = None
    if settings.OPENAI_API_KEY:
        app.state.job_client = AssistantsJobClient(
            settings.OPENAI_API_KEY,
            settings.ANALYSIS_ASSISTANTS,
            base_url=settings.OPENAI_BASE_URL,
            timeout=settings.UPSTREAM_TIMEOUT_SECONDS,
        )
        app.state.context_cache = ContextCache(app.state.job_client)
    else:
        logger.warning("OPENAI_API_KEY is not set, /analyze will be unavailable")

    yield

    if app.state.job_client is not None:
        await app.state.job_client.aclose()
    await app.state.identity_client.aclose()

app = FastAPI(
    title="Analysis Gateway",
    version="0.1.0",
    docs_url="/docs",
    redoc_url=None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

register_error_handlers(app)

app.include_router(auth_router)
app.include_router(analysis_router)
app.include_router(users_router)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    token = request_id_var.set(request_id)
    try:
        logger.info("%s %s", request.method, request.url.path)
        response = await call_next(request)
    finally:
        request_id_var.reset(token)
    response.headers["X-Request-ID"] = request_id
    return response


@app.get("/health")
def health():
    return {"status": "ok"}
