from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from ..config import settings


OAUTH_STATE_EXPIRE_MINUTES = 10


def create_access_token(data: Dict[str, Any], expires_minutes: Optional[int] = None) -> str:
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=expires_minutes or settings.access_token_expire_minutes)
    to_encode.update({"iat": int(now.timestamp()), "exp": int(expire.timestamp())})
    encoded_jwt = jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return encoded_jwt


def decode_access_token(token: str) -> Dict[str, Any]:
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        return payload
    except JWTError as e:
        raise e


def create_oauth_state(data: Dict[str, Any]) -> str:
    return create_access_token({**data, "purpose": "oauth_state"}, OAUTH_STATE_EXPIRE_MINUTES)


def decode_oauth_state(state: str) -> Dict[str, Any]:
    payload = decode_access_token(state)
    if payload.get("purpose") != "oauth_state":
        raise JWTError("Not an OAuth state token")
    return payload
