"""
Shared API dependencies.
"""

from typing import Optional

from fastapi import Cookie, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session

from .core.auth_provider import LocalAuthProvider, Principal, auth_provider
from .core.oauth import GoogleOAuthClient
from .database import get_session
from .models.user import User


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


def get_auth_provider() -> LocalAuthProvider:
    return auth_provider


def get_oauth_client() -> GoogleOAuthClient:
    return GoogleOAuthClient()


def _raise_invalid(detail: str):
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_optional_principal(
    token: Optional[str] = Depends(oauth2_scheme),
    access_token: Optional[str] = Cookie(default=None),
    session: Session = Depends(get_session),
    provider: LocalAuthProvider = Depends(get_auth_provider),
) -> Optional[Principal]:
    """The caller's principal, or None when no valid session is presented."""
    raw = token or access_token
    if not raw:
        return None
    return provider.get_session(session, raw)


def get_current_principal(
    principal: Optional[Principal] = Depends(get_optional_principal),
) -> Principal:
    if principal is None:
        _raise_invalid("Could not validate credentials")
    return principal


def get_current_user(
    principal: Principal = Depends(get_current_principal),
    session: Session = Depends(get_session),
) -> User:
    user = session.get(User, principal.account_id)
    if user is None:
        _raise_invalid("User not found")
    return user
