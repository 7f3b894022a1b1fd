from typing import Optional

from src.analysis_gateway.domain.enums import ErrorKind, JobStatus


class GatewayError(Exception):
    """
    Базовая ошибка сервиса. HTTP-статус выбирается по `kind`
    (см. api/errors.py), а не по тексту сообщения.
    """
    kind: ErrorKind = ErrorKind.INVALID_REQUEST

    def __init__(self, message: str, *, analysis_type: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.analysis_type = analysis_type

    def __str__(self) -> str:
        if self.analysis_type:
            return f"{self.analysis_type}: {self.message}"
        return self.message


class InvalidRequest(GatewayError):
    kind = ErrorKind.INVALID_REQUEST


class Unauthorized(GatewayError):
    kind = ErrorKind.UNAUTHORIZED


class InvalidCredentials(Unauthorized):
    def __init__(self, message: str = "Invalid credentials", **kwargs):
        super().__init__(message, **kwargs)


class QuotaExceeded(GatewayError):
    kind = ErrorKind.QUOTA_EXCEEDED

    def __init__(self, message: str = "Request quota exceeded", **kwargs):
        super().__init__(message, **kwargs)


class NotFound(GatewayError):
    kind = ErrorKind.NOT_FOUND


class UpstreamUnavailable(GatewayError):
    kind = ErrorKind.UPSTREAM_UNAVAILABLE


class UpstreamRejected(GatewayError):
    kind = ErrorKind.UPSTREAM_REJECTED

    def __init__(self, message: str, *, status_code: int, **kwargs):
        super().__init__(message, **kwargs)
        self.status_code = status_code


class JobFailed(GatewayError):
    kind = ErrorKind.JOB_FAILED

    def __init__(self, status: JobStatus, **kwargs):
        super().__init__(f"Run failed with status: {status.lower()}", **kwargs)
        self.status = status


class JobTimeout(GatewayError):
    kind = ErrorKind.JOB_TIMEOUT


class NoResult(GatewayError):
    kind = ErrorKind.NO_RESULT

    def __init__(self, message: str = "No valid response from assistant", **kwargs):
        super().__init__(message, **kwargs)
