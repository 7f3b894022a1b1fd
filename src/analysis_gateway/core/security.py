from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt, JWTError, ExpiredSignatureError

from src.analysis_gateway.core.settings import settings
from src.analysis_gateway.domain.errors import Unauthorized

# Разные версии клиента клали идентификатор пользователя под разными ключами
USER_ID_CLAIMS = ("userID", "user_id", "userId", "sub")


def encode_claims(claims: Dict[str, Any], secret: Optional[str] = None) -> str:
    return jwt.encode(claims, secret or settings.JWT_SECRET, algorithm=settings.JWT_ALG)


def create_access_token(user_id: int, username: Optional[str] = None) -> str:
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=settings.JWT_EXPIRE_MINUTES)

    payload: Dict[str, Any] = {"userID": int(user_id), "iat": int(now.timestamp()), "exp": int(exp.timestamp())}
    if username:
        payload["username"] = username

    return encode_claims(payload)


def decode_token(token: str, secret: Optional[str] = None) -> Dict[str, Any]:
    try:
        return jwt.decode(token, secret or settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    except ExpiredSignatureError as e:
        raise Unauthorized("Token expired") from e
    except JWTError as e:
        raise Unauthorized("Invalid token") from e


def user_id_from_claims(payload: Dict[str, Any]) -> int:
    for key in USER_ID_CLAIMS:
        value = payload.get(key)
        if value is None or value == "":
            continue
        try:
            return int(value)
        except (TypeError, ValueError):
            raise Unauthorized("Invalid token - malformed user ID")
    raise Unauthorized("Invalid token - missing user ID")
