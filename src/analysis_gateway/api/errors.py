import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.analysis_gateway.domain.enums import ErrorKind
from src.analysis_gateway.domain.errors import GatewayError

logger = logging.getLogger(__name__)


# Вид ошибки -> HTTP-статус. Таблица обязана покрывать весь ErrorKind.
STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.INVALID_REQUEST: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.QUOTA_EXCEEDED: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.UPSTREAM_REJECTED: status.HTTP_400_BAD_REQUEST,
    ErrorKind.JOB_FAILED: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.NO_RESULT: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.UPSTREAM_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.JOB_TIMEOUT: status.HTTP_504_GATEWAY_TIMEOUT,
}


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    status_code = STATUS_BY_KIND[exc.kind]
    logger.info("%s %s -> %s (%s): %s", request.method, request.url.path, status_code, exc.kind, exc)
    return error_response(status_code, str(exc))


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    response = error_response(exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return error_response(status.HTTP_400_BAD_REQUEST, message)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
